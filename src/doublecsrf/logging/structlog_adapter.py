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
"""StructlogAdapter — default LoggingPort implementation using structlog.

Settings come from two keys:

* ``doublecsrf.logging.format``: ``console`` (default) or ``json``.
* ``doublecsrf.logging.level``: ``root`` sets the root level, every other
  entry names a stdlib logger, e.g. ``doublecsrf.web: DEBUG`` to see each
  CSRF decision.

Records from plain ``logging.getLogger(__name__)`` loggers, which is what
the web filter uses, go through the same processor chain as structlog's
own loggers.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from doublecsrf.core.config import Config
from doublecsrf.logging.port import LoggingSettings


def _level_number(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


class StructlogAdapter:
    """LoggingPort backed by structlog, rendering through a stdlib handler."""

    def __init__(self) -> None:
        self._settings = LoggingSettings()

    @property
    def settings(self) -> LoggingSettings:
        return self._settings

    def configure(self, config: Config) -> None:
        self._settings = LoggingSettings.from_config(config)
        self._install()
        for name, level in self._settings.levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        """Set the level of stdlib logger *name*; unknown level names mean INFO."""
        logging.getLogger(name).setLevel(_level_number(level))

    def _install(self) -> None:
        pre_chain: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
        ]
        renderer: structlog.types.Processor = (
            structlog.processors.JSONRenderer()
            if self._settings.format == "json"
            else structlog.dev.ConsoleRenderer()
        )

        structlog.configure(
            processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
                foreign_pre_chain=pre_chain,
            )
        )
        logging.basicConfig(handlers=[handler], level=_level_number(self._settings.root_level), force=True)
