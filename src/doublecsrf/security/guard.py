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
"""DoubleCsrf — the CSRF guard.

Orchestrates token issuance and request validation on top of the token
engine (:mod:`doublecsrf.security.csrf`), the resolvers and the cookie
store. Everything here is synchronous and request-scoped: the guard holds
configuration only, never per-request or per-token state.

Usage::

    guard = DoubleCsrf(
        secret_resolver=StaticSecretResolver("new-secret", "old-secret"),
        session_identifier_resolver=lambda request: request.session["id"],
    )

    token = guard.generate_csrf_token(request, response)
    context = guard.protect(request, response)   # raises InvalidCsrfTokenError
"""

from __future__ import annotations

import dataclasses
import hmac
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from doublecsrf.kernel.exceptions import CsrfConfigurationError, InvalidCsrfTokenError
from doublecsrf.security.cookies import (
    DEFAULT_COOKIE_OPTIONS,
    CookieOptions,
    CookieStore,
    StarletteCookieStore,
)
from doublecsrf.security.csrf import (
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    DEFAULT_HMAC_ALGORITHM,
    DEFAULT_MESSAGE_DELIMITER,
    DEFAULT_RANDOM_VALUE_SIZE,
    DEFAULT_TOKEN_DELIMITER,
    IGNORED_METHODS,
    build_token,
    generate_random_value,
    tokens_equal,
    verify_token,
)
from doublecsrf.security.resolvers import (
    SecretResolver,
    SessionIdentifierResolver,
    as_secret_resolver,
    as_session_identifier_resolver,
    normalize_secrets,
)

if TYPE_CHECKING:
    from doublecsrf.core.config import Config

TokenSource = Callable[[Any], str | None]
SkipPredicate = Callable[[Any], Any]

_HEX_DIGITS = frozenset("0123456789abcdef")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CsrfErrorConfig:
    """Shape of the :class:`InvalidCsrfTokenError` raised by the guard."""

    status_code: int = 403
    message: str = "invalid csrf token"
    code: str | None = "EBADCSRFTOKEN"


@dataclass(frozen=True)
class CsrfConfig:
    """Guard configuration.

    ``cookie`` is merged over :data:`DEFAULT_COOKIE_OPTIONS`, so only the
    attributes that differ from the defaults need to be given.

    Attributes:
        cookie_name: Name of the verifier cookie.
        cookie: Default attributes of the verifier cookie.
        message_delimiter: Separator inside the HMAC message.
        token_delimiter: Separator between HMAC and random value in the token.
        random_value_size_bytes: Size of the per-token random value.
        hmac_algorithm: Digest name usable with :func:`hmac.new`.
        ignored_methods: HTTP methods :meth:`DoubleCsrf.protect` lets through.
        header_name: Header read by the default token source.
        error: Status, message and code of :class:`InvalidCsrfTokenError`.
        overwrite: Default for :attr:`GenerateTokenOptions.overwrite`.
        validate_on_reuse: Default for :attr:`GenerateTokenOptions.validate_on_reuse`.
        cookie_signing_secret: Key for signed cookies (``cookie.signed``).
    """

    cookie_name: str = CSRF_COOKIE_NAME
    cookie: CookieOptions = DEFAULT_COOKIE_OPTIONS
    message_delimiter: str = DEFAULT_MESSAGE_DELIMITER
    token_delimiter: str = DEFAULT_TOKEN_DELIMITER
    random_value_size_bytes: int = DEFAULT_RANDOM_VALUE_SIZE
    hmac_algorithm: str = DEFAULT_HMAC_ALGORITHM
    ignored_methods: frozenset[str] = IGNORED_METHODS
    header_name: str = CSRF_HEADER_NAME
    error: CsrfErrorConfig = field(default_factory=CsrfErrorConfig)
    overwrite: bool = False
    validate_on_reuse: bool = True
    cookie_signing_secret: str | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "cookie", dataclasses.replace(DEFAULT_COOKIE_OPTIONS, **self.cookie.explicit()))
        object.__setattr__(self, "ignored_methods", frozenset(m.upper() for m in self.ignored_methods))
        self._validate()

    def _validate(self) -> None:
        if not self.message_delimiter or not self.token_delimiter:
            raise CsrfConfigurationError("CSRF delimiters must not be empty", code="ECSRFCONFIG")
        if self.message_delimiter == self.token_delimiter:
            raise CsrfConfigurationError(
                "message_delimiter and token_delimiter must differ", code="ECSRFCONFIG"
            )
        # The hmac half is hex, so a hex character would split it.
        if _HEX_DIGITS.intersection(self.token_delimiter.lower()):
            raise CsrfConfigurationError(
                f"token_delimiter {self.token_delimiter!r} must not contain hex digits", code="ECSRFCONFIG"
            )
        if self.random_value_size_bytes < 1:
            raise CsrfConfigurationError("random_value_size_bytes must be at least 1", code="ECSRFCONFIG")
        # hashlib also knows the XOF digests (shake_*), which HMAC cannot use.
        try:
            hmac.new(b"", b"", self.hmac_algorithm).hexdigest()
        except (ValueError, TypeError) as exc:
            raise CsrfConfigurationError(
                f"Unknown hmac_algorithm {self.hmac_algorithm!r}", code="ECSRFCONFIG"
            ) from exc
        if not self.cookie_name:
            raise CsrfConfigurationError("cookie_name must not be empty", code="ECSRFCONFIG")


@dataclass(frozen=True)
class GenerateTokenOptions:
    """Per-call options for :meth:`DoubleCsrf.generate_csrf_token`.

    ``None`` fields fall back to the guard's :class:`CsrfConfig`.
    """

    overwrite: bool | None = None
    validate_on_reuse: bool | None = None
    cookie: CookieOptions | None = None


# ---------------------------------------------------------------------------
# Per-request context
# ---------------------------------------------------------------------------


class ProtectionState(Enum):
    """Outcome of :meth:`DoubleCsrf.protect` for one request."""

    IGNORED = auto()
    SKIPPED = auto()
    VALIDATED = auto()
    REJECTED = auto()


@dataclass(frozen=True)
class CsrfContext:
    """Capability to mint a token for the request it was created for.

    Returned by :meth:`DoubleCsrf.protect` (or carried on the error it
    raises) so handlers can issue tokens without re-deriving the request
    and response.
    """

    guard: DoubleCsrf
    request: Any
    response: Any
    state: ProtectionState

    def generate_token(self, options: GenerateTokenOptions | None = None) -> str:
        """Issue a token for the bound request and set its cookie on the bound response."""
        return self.guard.generate_csrf_token(self.request, self.response, options)


# ---------------------------------------------------------------------------
# Guard
# ---------------------------------------------------------------------------


class DoubleCsrf:
    """Double-submit cookie CSRF guard with HMAC session binding.

    Args:
        secret_resolver: Supplies the secrets for a request, newest first.
            The first secret signs new tokens; any of them validates.
        session_identifier_resolver: Supplies the client's session id.
        config: Guard configuration; defaults to :class:`CsrfConfig`.
        token_source: ``(request) -> str | None`` returning the token the
            client presented. Defaults to the ``config.header_name`` header.
        skip_csrf_protection: Optional ``(request) -> bool`` predicate. Only
            a return value of exactly ``True`` skips validation.
        cookie_store: Verifier cookie adapter; defaults to
            :class:`StarletteCookieStore`.
    """

    def __init__(
        self,
        secret_resolver: SecretResolver | Callable[[Any], str | Sequence[str]],
        session_identifier_resolver: SessionIdentifierResolver | Callable[[Any], str],
        config: CsrfConfig | None = None,
        *,
        token_source: TokenSource | None = None,
        skip_csrf_protection: SkipPredicate | None = None,
        cookie_store: CookieStore | None = None,
    ) -> None:
        self._config = config or CsrfConfig()
        self._secret_resolver = as_secret_resolver(secret_resolver)
        self._session_identifier_resolver = as_session_identifier_resolver(session_identifier_resolver)
        self._token_source: TokenSource = token_source or self._token_from_header
        self._skip_csrf_protection = skip_csrf_protection

        if cookie_store is None:
            if self._config.cookie.signed and not self._config.cookie_signing_secret:
                raise CsrfConfigurationError(
                    "Signed CSRF cookies need cookie_signing_secret", code="ECSRFCONFIG"
                )
            cookie_store = StarletteCookieStore(self._config.cookie_signing_secret)
        self._cookie_store = cookie_store

    @classmethod
    def from_config(
        cls,
        config: Config,
        secret_resolver: SecretResolver | Callable[[Any], str | Sequence[str]],
        session_identifier_resolver: SessionIdentifierResolver | Callable[[Any], str],
        **kwargs: Any,
    ) -> DoubleCsrf:
        """Build a guard from the ``doublecsrf.csrf`` section of *config*."""
        from doublecsrf.config.properties.csrf import CsrfProperties

        properties = config.bind(CsrfProperties)
        return cls(secret_resolver, session_identifier_resolver, properties.to_csrf_config(), **kwargs)

    @property
    def config(self) -> CsrfConfig:
        return self._config

    def invalid_csrf_token_error(self) -> InvalidCsrfTokenError:
        """Return a new :class:`InvalidCsrfTokenError` shaped by ``config.error``."""
        return InvalidCsrfTokenError.from_config(self._config.error)

    # ------------------------------------------------------------------
    # Token issuance
    # ------------------------------------------------------------------

    def generate_csrf_token(
        self,
        request: Any,
        response: Any,
        options: GenerateTokenOptions | None = None,
    ) -> str:
        """Return a CSRF token for *request* and set the verifier cookie on *response*.

        With ``overwrite`` false, a cookie that still verifies for the
        current secrets and session is reused verbatim. A cookie that does
        not verify raises :class:`InvalidCsrfTokenError` when
        ``validate_on_reuse`` is true and is replaced otherwise. With
        ``overwrite`` true a fresh token is always issued.

        Raises:
            InvalidCsrfTokenError: Reuse was requested but the existing
                cookie is invalid and ``validate_on_reuse`` is true.
            CsrfConfigurationError: The secret resolver returned no secrets.
        """
        options = options or GenerateTokenOptions()
        overwrite = self._config.overwrite if options.overwrite is None else options.overwrite
        validate_on_reuse = (
            self._config.validate_on_reuse if options.validate_on_reuse is None else options.validate_on_reuse
        )
        cookie_options = self._config.cookie.merge(options.cookie)

        token = self._issue_token(request, overwrite, validate_on_reuse)
        self._cookie_store.write(response, self._config.cookie_name, token, cookie_options)
        return token

    def _issue_token(self, request: Any, overwrite: bool, validate_on_reuse: bool) -> str:
        possible_secrets = self._resolve_secrets(request)
        if not possible_secrets:
            raise CsrfConfigurationError("The secret resolver returned no secrets", code="ECSRFCONFIG")
        session_id = self._resolve_session_identifier(request)

        existing = self._read_cookie(request)
        if existing is not None and not overwrite:
            if self._verify(possible_secrets, session_id, existing):
                return existing
            if validate_on_reuse:
                raise self.invalid_csrf_token_error()

        return build_token(
            possible_secrets[0],
            session_id,
            generate_random_value(self._config.random_value_size_bytes),
            algorithm=self._config.hmac_algorithm,
            message_delimiter=self._config.message_delimiter,
            token_delimiter=self._config.token_delimiter,
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_request(self, request: Any) -> bool:
        """Return ``True`` if *request* presents a token matching its cookie and session.

        The presented token must equal the cookie value exactly and verify
        against one of the current secrets and the current session id.
        Missing or malformed input yields ``False``.
        """
        cookie_token = self._read_cookie(request)
        if cookie_token is None:
            return False

        presented = self._token_source(request)
        if not isinstance(presented, str):
            return False

        if not tokens_equal(cookie_token, presented):
            return False

        return self._verify(
            self._resolve_secrets(request),
            self._resolve_session_identifier(request),
            presented,
        )

    def protect(self, request: Any, response: Any) -> CsrfContext:
        """Enforce CSRF protection on *request*.

        Requests with an ignored method, or for which ``skip_csrf_protection``
        returns exactly ``True``, pass without validation; all others must
        pass :meth:`validate_request`.

        Returns:
            The :class:`CsrfContext` for this request.

        Raises:
            InvalidCsrfTokenError: Validation failed. The error's
                ``csrf_context`` holds the context for this request.
        """
        if str(request.method).upper() in self._config.ignored_methods:
            return CsrfContext(self, request, response, ProtectionState.IGNORED)

        if self._skip_csrf_protection is not None and self._skip_csrf_protection(request) is True:
            return CsrfContext(self, request, response, ProtectionState.SKIPPED)

        if self.validate_request(request):
            return CsrfContext(self, request, response, ProtectionState.VALIDATED)

        error = self.invalid_csrf_token_error()
        error.csrf_context = CsrfContext(self, request, response, ProtectionState.REJECTED)
        raise error

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _verify(self, possible_secrets: Sequence[str], session_id: str, token: str) -> bool:
        return verify_token(
            possible_secrets,
            session_id,
            token,
            algorithm=self._config.hmac_algorithm,
            message_delimiter=self._config.message_delimiter,
            token_delimiter=self._config.token_delimiter,
        )

    def _read_cookie(self, request: Any) -> str | None:
        value = self._cookie_store.read(request, self._config.cookie_name, self._config.cookie)
        return value if isinstance(value, str) else None

    def _resolve_secrets(self, request: Any) -> list[str]:
        return normalize_secrets(self._secret_resolver.resolve(request))

    def _resolve_session_identifier(self, request: Any) -> str:
        session_id = self._session_identifier_resolver.resolve(request)
        if session_id is None:
            return ""
        if not isinstance(session_id, str):
            raise CsrfConfigurationError(
                f"Session identifiers must be strings, got {type(session_id).__name__}",
                code="ECSRFCONFIG",
            )
        return session_id

    def _token_from_header(self, request: Any) -> str | None:
        return request.headers.get(self._config.header_name)
