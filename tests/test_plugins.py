# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for the plugin registry, plugin wrapping and the logging plugin."""

import logging
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

import genro_traversal.plugins.logging  # noqa: F401
from genro_traversal import Traversal
from genro_traversal.plugins._base_plugin import BasePlugin  # Not public API


class StampPlugin(BasePlugin):
    plugin_code = "stamp"
    plugin_description = "Appends a stamp to the response log"

    def __init__(self, traversal, **config):
        super().__init__(traversal, **config)
        self.registered = []

    def configure(self, enabled: bool = True, value: str = "stamp"):
        pass

    def on_register(self, traversal, entry):
        self.registered.append(entry.label)

    def wrap_handler(self, traversal, entry, call_next):
        value = self.configuration(entry).get("value", "stamp")

        def wrapper(request, response, next):
            response.log.append(value)
            call_next(request, response, next)

        return wrapper


class OuterPlugin(BasePlugin):
    plugin_code = "outer"
    plugin_description = "Marks handler start/end"

    def wrap_handler(self, traversal, entry, call_next):
        def wrapper(request, response, next):
            response.log.append("outer:start")
            call_next(request, response, next)
            response.log.append("outer:end")

        return wrapper


Traversal.register_plugin(StampPlugin)
Traversal.register_plugin(OuterPlugin)


def build(*plugins):
    traversal = Traversal(plugins=list(plugins))
    traversal.register_resource("root", {"children": {"items": "items"}})
    traversal.register_resource("items", {})
    traversal.set_root_resource("root")
    return traversal


def handler(request, response, next):
    response.log.append("handler")
    next()


def run(traversal, path="/items", method="GET"):
    request = SimpleNamespace(path=path, method=method)
    response = SimpleNamespace(log=[])
    traversal.middleware(request, response, lambda: response.log.append("next"))
    return response.log


class TestRegistry:
    def test_register_plugin_requires_subclass(self):
        with pytest.raises(TypeError):
            Traversal.register_plugin(object)

    def test_register_plugin_requires_plugin_code(self):
        class Nameless(BasePlugin):
            pass

        with pytest.raises(ValueError, match="missing plugin_code"):
            Traversal.register_plugin(Nameless)

    def test_register_plugin_collision(self):
        class OtherStamp(BasePlugin):
            plugin_code = "stamp"

        with pytest.raises(ValueError, match="already registered"):
            Traversal.register_plugin(OtherStamp)
        Traversal.register_plugin(StampPlugin)  # same class is fine

    def test_available_plugins(self):
        available = Traversal.available_plugins()
        assert available["logging"].__name__ == "LoggingPlugin"
        assert available["stamp"] is StampPlugin

    def test_plug_validates_name(self):
        traversal = Traversal()
        with pytest.raises(TypeError):
            traversal.plug(StampPlugin)
        with pytest.raises(ValueError, match="Unknown plugin"):
            traversal.plug("missing")

    def test_plug_rejects_duplicate(self):
        traversal = Traversal().plug("stamp")
        with pytest.raises(ValueError, match="already attached"):
            traversal.plug("stamp")

    def test_plugins_string_and_lookup(self):
        traversal = Traversal(plugins="stamp, outer")
        assert [p.name for p in traversal.iter_plugins()] == ["stamp", "outer"]
        assert traversal.get_plugin("stamp").plugin_description.startswith("Appends")
        with pytest.raises(AttributeError):
            traversal.get_plugin("logging")


class TestConfiguration:
    def test_configure_is_validated(self):
        with pytest.raises(ValidationError):
            Traversal().plug("stamp", value=3)
        with pytest.raises(ValidationError):
            Traversal().plug("stamp", unknown=True)

    def test_flags(self):
        traversal = Traversal().plug("stamp", flags="enabled:off")
        assert traversal.get_plugin("stamp").configuration() == {"enabled": False}

    def test_path_options_are_validated(self):
        traversal = build("stamp")
        with pytest.raises(ValidationError):
            traversal.register_resource_path("items", handler, stamp_value=12)

    def test_path_options_for_unattached_plugin_are_kept(self):
        traversal = build()
        entry = traversal.register_resource_path("items", handler, stamp_value="late")
        assert entry.metadata["plugin_config"] == {"stamp": {"value": "late"}}
        traversal.plug("stamp")
        assert run(traversal) == ["late", "handler", "next"]

    def test_path_flags(self):
        traversal = build("stamp")
        entry = traversal.register_resource_path("items", handler, stamp_flags="enabled:off")
        assert traversal.get_plugin("stamp").configuration(entry) == {"enabled": False}
        assert run(traversal) == ["handler", "next"]

    def test_path_flags_are_validated(self):
        traversal = build("stamp")
        with pytest.raises(ValidationError):
            traversal.register_resource_path("items", handler, stamp_flags="missing")

    def test_plug_validates_existing_path_options(self):
        traversal = build()
        traversal.register_resource_path("items", handler, stamp_value=1)
        with pytest.raises(ValidationError):
            traversal.plug("stamp")
        assert traversal.iter_plugins() == []


class TestWrapping:
    def test_plugin_wraps_each_handler(self):
        traversal = build("stamp")
        traversal.register_resource_path("items", handler, handler)
        assert run(traversal) == ["stamp", "handler", "stamp", "handler", "next"]

    def test_first_attached_is_outermost(self):
        traversal = build("outer", "stamp")
        traversal.register_resource_path("items", handler)
        assert run(traversal) == ["outer:start", "stamp", "handler", "next", "outer:end"]

    def test_per_path_override(self):
        traversal = build("stamp")
        traversal.register_resource_path("items", handler, stamp_value="custom")
        assert run(traversal) == ["custom", "handler", "next"]

    def test_per_path_disable(self):
        traversal = build("stamp")
        traversal.register_resource_path("items", handler, stamp_enabled=False)
        assert run(traversal) == ["handler", "next"]

    def test_global_disable(self):
        traversal = build()
        traversal.plug("stamp", enabled=False)
        traversal.register_resource_path("items", handler)
        assert run(traversal) == ["handler", "next"]

    def test_on_register_sees_existing_and_new_entries(self):
        traversal = build()
        traversal.register_resource_path("items", handler)
        traversal.plug("stamp")
        traversal.register_resource_path("items", handler, name="edit", method="post")
        assert traversal.get_plugin("stamp").registered == ["items:index", "items:edit POST"]


class TestLoggingPlugin:
    def test_logs_start_and_end(self, caplog):
        caplog.set_level(logging.INFO, logger="genro_traversal")
        traversal = build("logging")
        traversal.register_resource_path("items", handler, method="get")
        assert run(traversal) == ["handler", "next"]
        messages = [r.getMessage() for r in caplog.records if r.name == "genro_traversal"]
        assert messages[0] == "items:index GET handler start"
        assert messages[1].startswith("items:index GET handler end (")
        assert messages[1].endswith(" ms)")

    def test_print_mode(self, capsys):
        traversal = build()
        traversal.plug("logging", print=True, before=False)
        traversal.register_resource_path("items", handler)
        run(traversal)
        out = capsys.readouterr().out
        assert "start" not in out
        assert "items:index handler end (" in out

    def test_falls_back_to_print_without_handlers(self, capsys):
        silent = logging.getLogger("genro_traversal.tests.silent")
        silent.propagate = False
        traversal = Traversal()
        traversal.register_resource("root", {})
        traversal.set_root_resource("root")
        traversal.plug("logging", logger=silent, after=False)
        traversal.register_resource_path("root", handler)
        request = SimpleNamespace(path="/", method="GET")
        traversal.middleware(request, SimpleNamespace(log=[]), lambda: None)
        assert capsys.readouterr().out.strip() == "root:index handler start"

    def test_per_path_flags(self, capsys):
        traversal = build()
        traversal.plug("logging", print=True)
        traversal.register_resource_path("items", handler, logging_flags="before:off")
        run(traversal)
        out = capsys.readouterr().out
        assert "start" not in out
        assert "items:index handler end (" in out

    def test_end_message_follows_downstream_handlers(self, capsys):
        def first(request, response, next):
            next()

        def second(request, response, next):
            print("second ran")
            next()

        traversal = build()
        traversal.plug("logging", print=True)
        traversal.register_resource_path("items", first, second)
        run(traversal)
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "items:index first start"
        assert lines[-1].startswith("items:index first end (")
        assert "second ran" in lines

    def test_per_path_disable(self, capsys):
        traversal = build()
        traversal.plug("logging", print=True)
        traversal.register_resource_path("items", handler, logging_enabled=False)
        run(traversal)
        assert capsys.readouterr().out == ""

    def test_preserves_handler_name(self):
        traversal = build("logging")
        entry = traversal.register_resource_path("items", handler)
        plugin = traversal.get_plugin("logging")
        wrapped = plugin.wrap_handler(traversal, entry, handler)
        assert wrapped.__name__ == "handler"
