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
"""CSRF subsystem configuration properties."""

from __future__ import annotations

from dataclasses import dataclass, field

from doublecsrf.core.config import config_properties
from doublecsrf.security.cookies import CookieOptions
from doublecsrf.security.csrf import (
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    DEFAULT_HMAC_ALGORITHM,
    DEFAULT_MESSAGE_DELIMITER,
    DEFAULT_RANDOM_VALUE_SIZE,
    DEFAULT_TOKEN_DELIMITER,
)
from doublecsrf.security.guard import CsrfConfig, CsrfErrorConfig


@config_properties(prefix="doublecsrf.csrf")
@dataclass
class CsrfProperties:
    """Configuration for the CSRF guard (doublecsrf.csrf.*).

    Flat, file-bindable mirror of :class:`CsrfConfig`; use
    :meth:`to_csrf_config` to build the guard's configuration.
    """

    cookie_name: str = CSRF_COOKIE_NAME
    cookie_path: str = "/"
    cookie_domain: str | None = None
    cookie_same_site: str = "lax"
    cookie_secure: bool = True
    cookie_http_only: bool = True
    cookie_signed: bool = False
    cookie_max_age: int | None = None
    cookie_signing_secret: str | None = None
    message_delimiter: str = DEFAULT_MESSAGE_DELIMITER
    token_delimiter: str = DEFAULT_TOKEN_DELIMITER
    random_value_size_bytes: int = DEFAULT_RANDOM_VALUE_SIZE
    hmac_algorithm: str = DEFAULT_HMAC_ALGORITHM
    ignored_methods: list[str] = field(default_factory=lambda: ["GET", "HEAD", "OPTIONS"])
    header_name: str = CSRF_HEADER_NAME
    error_status_code: int = 403
    error_message: str = "invalid csrf token"
    error_code: str | None = "EBADCSRFTOKEN"
    overwrite: bool = False
    validate_on_reuse: bool = True

    def to_csrf_config(self) -> CsrfConfig:
        """Build the nested :class:`CsrfConfig` these properties describe."""
        return CsrfConfig(
            cookie_name=self.cookie_name,
            cookie=CookieOptions(
                path=self.cookie_path,
                domain=self.cookie_domain,
                same_site=self.cookie_same_site.lower(),  # type: ignore[arg-type]
                secure=self.cookie_secure,
                http_only=self.cookie_http_only,
                signed=self.cookie_signed,
                max_age=self.cookie_max_age,
            ),
            message_delimiter=self.message_delimiter,
            token_delimiter=self.token_delimiter,
            random_value_size_bytes=self.random_value_size_bytes,
            hmac_algorithm=self.hmac_algorithm,
            ignored_methods=frozenset(self.ignored_methods),
            header_name=self.header_name,
            error=CsrfErrorConfig(
                status_code=self.error_status_code,
                message=self.error_message,
                code=self.error_code,
            ),
            overwrite=self.overwrite,
            validate_on_reuse=self.validate_on_reuse,
            cookie_signing_secret=self.cookie_signing_secret,
        )
