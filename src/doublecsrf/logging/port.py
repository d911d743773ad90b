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
"""LoggingPort — how doublecsrf's logging settings reach a logging backend.

The guard never logs. The web adapter logs through stdlib loggers under
``doublecsrf.web``: rejected requests at ``WARNING``, passed checks at
``DEBUG`` and handler failures at ``ERROR``. A port implementation parses
the ``doublecsrf.logging`` section into :class:`LoggingSettings` and
decides how those records are rendered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from doublecsrf.core.config import Config


@dataclass(frozen=True)
class LoggingSettings:
    """Parsed ``doublecsrf.logging`` section.

    Attributes:
        root_level: Level of the root logger.
        format: ``console`` or ``json``.
        levels: Per-logger levels, e.g. ``{"doublecsrf.web": "DEBUG"}``.
    """

    root_level: str = "INFO"
    format: str = "console"
    levels: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: Config) -> LoggingSettings:
        levels = {name: str(level).upper() for name, level in config.get_section("doublecsrf.logging.level").items()}
        return cls(
            root_level=levels.pop("root", "INFO"),
            format=str(config.get("doublecsrf.logging.format", "console")).lower(),
            levels=levels,
        )


@runtime_checkable
class LoggingPort(Protocol):
    """Logging backend configured from ``doublecsrf.logging``."""

    @property
    def settings(self) -> LoggingSettings:
        """Settings applied by the last :meth:`configure` call."""
        ...

    def configure(self, config: Config) -> None:
        """Parse the logging section of *config* and install the backend."""
        ...

    def get_logger(self, name: str) -> Any: ...

    def set_level(self, name: str, level: str) -> None: ...
