from __future__ import annotations

from types import SimpleNamespace

from genro_traversal import Resource, Traversal

PROJECTS = {
    "apollo": {"title": "Apollo", "tasks": {1: "Design", 2: "Launch"}},
    "gemini": {"title": "Gemini", "tasks": {1: "Dock"}},
}

app = Traversal("tracker", plugins="logging")


@app.resource("root")
class Root(Resource):
    children = {"projects": "projects"}


class Projects(Resource):
    child = "project"

    def child_validate(self, key):
        return key in PROJECTS


class Project(Resource):
    children = {"tasks": "tasks"}

    def init(self):
        self.data = PROJECTS[self.key]


class Tasks(Resource):
    child = "task"

    def child_validate(self, key):
        return key.isdigit() and int(key) in self.parent.data["tasks"]


class Task(Resource):
    def init(self):
        self.title = self.traverse_to("project").data["tasks"][int(self.key)]


app.register_resource("projects", Projects)
app.register_resource("project", Project)
app.register_resource("tasks", Tasks)
app.register_resource("task", Task)
app.set_root_resource("root")


@app.path("project", method="get")
def show_project(request, response, next):
    response.body = request.resource.data["title"]


@app.path("task", method="get")
def show_task(request, response, next):
    project = request.resource.traverse_to("project")
    response.body = f"{project.data['title']}: {request.resource.title}"


@app.path("task", name="edit", logging_before=False)
def edit_task(request, response, next):
    response.body = f"edit form for {request.build_resource_url(request.resource)}"


app.freeze()


def not_found(response):
    def next():
        response.body = "404"

    return next


if __name__ == "__main__":
    for path in ("/projects/apollo", "/projects/apollo/tasks/2", "/projects/gemini/tasks/1/edit",
                 "/projects/mercury", "/projects/apollo/tasks/9"):
        request = SimpleNamespace(path=path, method="GET")
        response = SimpleNamespace(body=None)
        app.middleware(request, response, not_found(response))
        print(f"{path:35} -> {response.body}")
