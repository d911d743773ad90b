# Copyright 2026 Firefly Software Solutions Inc.
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
"""Tests for StructlogAdapter and configure_logging."""

import json
import logging

import pytest

from doublecsrf.core.config import Config
from doublecsrf.logging import configure_logging
from doublecsrf.logging.structlog_adapter import StructlogAdapter


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name in ("doublecsrf.web", "doublecsrf.security"):
        logging.getLogger(name).setLevel(logging.NOTSET)


class TestStructlogAdapterConfigure:
    def test_configure_with_defaults(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter.settings.root_level == "INFO"
        assert adapter.settings.format == "console"
        assert logging.getLogger().level == logging.INFO

    def test_configure_reads_root_level(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"doublecsrf": {"logging": {"level": {"root": "debug"}}}}))
        assert adapter.settings.root_level == "DEBUG"
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_reads_format(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"doublecsrf": {"logging": {"format": "JSON"}}}))
        assert adapter.settings.format == "json"

    def test_configure_reads_per_module_levels(self):
        adapter = StructlogAdapter()
        config = Config({"doublecsrf": {"logging": {"level": {"root": "INFO", "doublecsrf.web": "DEBUG"}}}})
        adapter.configure(config)
        assert adapter.settings.levels == {"doublecsrf.web": "DEBUG"}
        assert logging.getLogger("doublecsrf.web").level == logging.DEBUG

    def test_package_defaults(self, tmp_path):
        adapter = StructlogAdapter()
        adapter.configure(Config.from_sources(tmp_path))
        assert adapter.settings.root_level == "INFO"
        assert adapter.settings.format == "console"


class TestStructlogAdapterOutput:
    def test_stdlib_records_rendered_as_json(self, capsys):
        adapter = StructlogAdapter()
        adapter.configure(Config({"doublecsrf": {"logging": {"format": "json"}}}))

        logging.getLogger("doublecsrf.web.test").warning("Rejected request with invalid CSRF token")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "Rejected request with invalid CSRF token"
        assert record["level"] == "warning"
        assert record["logger"] == "doublecsrf.web.test"


class TestStructlogAdapterGetLogger:
    def test_get_logger_returns_bound_logger(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        logger = adapter.get_logger("doublecsrf.test")
        assert callable(getattr(logger, "info", None))
        assert callable(getattr(logger, "debug", None))


class TestStructlogAdapterSetLevel:
    def test_set_level_updates_module_level(self):
        adapter = StructlogAdapter()
        adapter.set_level("doublecsrf.security", "WARNING")
        assert logging.getLogger("doublecsrf.security").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        adapter = StructlogAdapter()
        adapter.set_level("doublecsrf.security", "chatty")
        assert logging.getLogger("doublecsrf.security").level == logging.INFO


class TestConfigureLogging:
    def test_returns_default_adapter(self):
        adapter = configure_logging(Config({}))
        assert isinstance(adapter, StructlogAdapter)

    def test_uses_given_adapter(self):
        calls = []

        class RecordingAdapter:
            def configure(self, config):
                calls.append(config)

            def get_logger(self, name):
                return None

            def set_level(self, name, level):
                pass

        config = Config({})
        adapter = RecordingAdapter()
        assert configure_logging(config, adapter) is adapter
        assert calls == [config]
