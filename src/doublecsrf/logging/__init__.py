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
"""doublecsrf Logging — structlog-backed logging configuration."""

from doublecsrf.core.config import Config
from doublecsrf.logging.port import LoggingPort, LoggingSettings
from doublecsrf.logging.structlog_adapter import StructlogAdapter

__all__ = ["LoggingPort", "LoggingSettings", "StructlogAdapter", "configure_logging"]


def configure_logging(config: Config, adapter: LoggingPort | None = None) -> LoggingPort:
    """Configure logging from *config* and return the adapter used."""
    adapter = adapter or StructlogAdapter()
    adapter.configure(config)
    return adapter
