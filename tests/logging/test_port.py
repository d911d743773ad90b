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
"""Tests for LoggingPort and LoggingSettings."""

from typing import Any

from doublecsrf.core.config import Config
from doublecsrf.logging.port import LoggingPort, LoggingSettings
from doublecsrf.logging.structlog_adapter import StructlogAdapter


class TestLoggingPortProtocol:
    def test_structlog_adapter_is_instance(self):
        assert isinstance(StructlogAdapter(), LoggingPort)

    def test_conforming_class_is_instance(self):
        class RecordingLogging:
            settings = LoggingSettings()

            def configure(self, config: Any) -> None:
                pass

            def get_logger(self, name: str) -> Any:
                pass

            def set_level(self, name: str, level: str) -> None:
                pass

        assert isinstance(RecordingLogging(), LoggingPort)

    def test_class_without_settings_is_not_instance(self):
        class NoSettings:
            def configure(self, config: Any) -> None:
                pass

            def get_logger(self, name: str) -> Any:
                pass

            def set_level(self, name: str, level: str) -> None:
                pass

        assert not isinstance(NoSettings(), LoggingPort)

    def test_non_conforming_class_is_not_instance(self):
        class Incomplete:
            def get_logger(self, name: str) -> Any:
                pass

        assert not isinstance(Incomplete(), LoggingPort)


class TestLoggingSettings:
    def test_defaults_for_empty_config(self):
        assert LoggingSettings.from_config(Config({})) == LoggingSettings()

    def test_root_level_is_split_from_logger_levels(self):
        config = Config({
            "doublecsrf": {
                "logging": {
                    "format": "JSON",
                    "level": {"root": "warning", "doublecsrf.web": "debug"},
                }
            }
        })

        settings = LoggingSettings.from_config(config)

        assert settings.root_level == "WARNING"
        assert settings.format == "json"
        assert settings.levels == {"doublecsrf.web": "DEBUG"}

    def test_env_override_of_format(self, monkeypatch):
        monkeypatch.setenv("DOUBLECSRF_LOGGING_FORMAT", "json")
        assert LoggingSettings.from_config(Config({})).format == "json"
