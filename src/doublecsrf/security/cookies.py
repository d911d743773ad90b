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
"""Token store adapter — reads and writes the verifier cookie.

The guard never touches transport objects directly; it goes through a
:class:`CookieStore`. :class:`StarletteCookieStore` is the default and
works with ``starlette.requests.Request`` / ``starlette.responses.Response``
or anything exposing ``request.cookies`` and ``response.set_cookie()``.

Signed cookies use :class:`itsdangerous.Signer`. A cookie whose signature
does not verify reads as absent.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

from itsdangerous import BadSignature, Signer

from doublecsrf.kernel.exceptions import CsrfConfigurationError

SameSite = Literal["lax", "strict", "none"]

_SIGNER_SALT = "doublecsrf.cookie"


@dataclass(frozen=True)
class CookieOptions:
    """Attributes of the verifier cookie.

    ``None`` means "not set". Guard defaults and per-call overrides are both
    expressed with this struct and combined with :meth:`merge`.
    """

    path: str | None = None
    domain: str | None = None
    same_site: SameSite | None = None
    secure: bool | None = None
    http_only: bool | None = None
    signed: bool | None = None
    max_age: int | None = None

    def merge(self, overrides: CookieOptions | None) -> CookieOptions:
        """Return these options with every non-``None`` field of *overrides* applied.

        ``signed`` cannot change per call: the cookie must be read back the
        way the guard is configured to read it.
        """
        if overrides is None:
            return self
        if overrides.signed is not None and overrides.signed != bool(self.signed):
            raise CsrfConfigurationError(
                "The 'signed' cookie attribute cannot be overridden per call",
                code="ECSRFCONFIG",
            )
        return dataclasses.replace(self, **overrides.explicit())

    def explicit(self) -> dict[str, Any]:
        """Return the fields that are set, i.e. not ``None``."""
        return {
            f.name: getattr(self, f.name)
            for f in dataclasses.fields(self)
            if getattr(self, f.name) is not None
        }


DEFAULT_COOKIE_OPTIONS = CookieOptions(
    path="/",
    same_site="lax",
    secure=True,
    http_only=True,
    signed=False,
)


@runtime_checkable
class CookieStore(Protocol):
    """Port for reading and writing the verifier cookie."""

    def read(self, request: Any, name: str, options: CookieOptions) -> str | None:
        """Return the cookie value, or ``None`` when absent or unreadable."""
        ...

    def write(self, response: Any, name: str, value: str, options: CookieOptions) -> None:
        """Set the cookie on *response*."""
        ...


class StarletteCookieStore:
    """CookieStore adapter for Starlette requests and responses.

    Args:
        signing_secret: Key for signed cookies. Required only when the
            guard's cookie options have ``signed=True``.
    """

    def __init__(self, signing_secret: str | None = None) -> None:
        self._signer = Signer(signing_secret, salt=_SIGNER_SALT) if signing_secret else None

    def read(self, request: Any, name: str, options: CookieOptions) -> str | None:
        value = request.cookies.get(name)
        if not isinstance(value, str):
            return None
        if not options.signed:
            return value
        try:
            return self._require_signer().unsign(value).decode()
        except BadSignature:
            return None

    def write(self, response: Any, name: str, value: str, options: CookieOptions) -> None:
        if options.signed:
            value = self._require_signer().sign(value).decode()
        response.set_cookie(
            key=name,
            value=value,
            max_age=options.max_age,
            path=options.path or "/",
            domain=options.domain,
            secure=bool(options.secure),
            httponly=bool(options.http_only),
            samesite=options.same_site,
        )

    def _require_signer(self) -> Signer:
        if self._signer is None:
            raise CsrfConfigurationError(
                "Signed CSRF cookies need a cookie signing secret",
                code="ECSRFCONFIG",
            )
        return self._signer


class PendingCookies:
    """Response stand-in that records cookies until the real response exists.

    In an ASGI filter the response is only created after the handler runs,
    yet the handler is the one minting tokens. Tokens are written here and
    copied onto the response with :meth:`apply_to`. The last write per
    cookie name wins.
    """

    def __init__(self) -> None:
        self._cookies: dict[str, dict[str, Any]] = {}

    def set_cookie(self, key: str, value: str = "", **kwargs: Any) -> None:
        self._cookies[key] = {"key": key, "value": value, **kwargs}

    def get(self, key: str) -> str | None:
        """Return the recorded value of cookie *key*, if any."""
        cookie = self._cookies.get(key)
        return None if cookie is None else cookie["value"]

    def __len__(self) -> int:
        return len(self._cookies)

    def apply_to(self, response: Any) -> Any:
        """Set every recorded cookie on *response* and return it."""
        for kwargs in self._cookies.values():
            response.set_cookie(**kwargs)
        return response
