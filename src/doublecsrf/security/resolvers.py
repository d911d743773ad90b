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
"""Secret and session-identifier resolver ports.

The guard asks these strategies for the secrets and the session identifier
of the current request instead of reading hidden global state. A plain
callable is accepted wherever a resolver is, and is wrapped with
:func:`as_secret_resolver` / :func:`as_session_identifier_resolver`.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from doublecsrf.kernel.exceptions import CsrfConfigurationError


@runtime_checkable
class SecretResolver(Protocol):
    """Port supplying the server secrets for a request, newest first."""

    def resolve(self, request: Any) -> str | Sequence[str]:
        """Return a secret or an ordered sequence of secrets."""
        ...


@runtime_checkable
class SessionIdentifierResolver(Protocol):
    """Port supplying the identifier of the client's session."""

    def resolve(self, request: Any) -> str:
        """Return the session identifier, or ``""`` when there is no session."""
        ...


def normalize_secrets(value: str | Sequence[str]) -> list[str]:
    """Turn a resolver result into a list of secrets, preferred secret first."""
    if isinstance(value, str):
        return [value]
    if value is None:
        raise CsrfConfigurationError("The secret resolver returned None", code="ECSRFCONFIG")
    try:
        secrets = list(value)
    except TypeError as exc:
        raise CsrfConfigurationError(
            f"The secret resolver must return a string or a sequence of strings, got {type(value).__name__}",
            code="ECSRFCONFIG",
        ) from exc
    for secret in secrets:
        if not isinstance(secret, str):
            raise CsrfConfigurationError(
                f"CSRF secrets must be strings, got {type(secret).__name__}",
                code="ECSRFCONFIG",
            )
    return secrets


class StaticSecretResolver:
    """SecretResolver returning the same secrets for every request.

    Args:
        *secrets: The secrets, newest (preferred for generation) first.
    """

    def __init__(self, *secrets: str) -> None:
        if not secrets:
            raise CsrfConfigurationError("StaticSecretResolver needs at least one secret", code="ECSRFCONFIG")
        self._secrets = list(secrets)

    def resolve(self, request: Any) -> list[str]:
        return list(self._secrets)


class CallableSecretResolver:
    """SecretResolver delegating to a ``(request) -> str | list[str]`` callable."""

    def __init__(self, func: Callable[[Any], str | Sequence[str]]) -> None:
        self._func = func

    def resolve(self, request: Any) -> str | Sequence[str]:
        return self._func(request)


class CallableSessionIdentifierResolver:
    """SessionIdentifierResolver delegating to a ``(request) -> str`` callable."""

    def __init__(self, func: Callable[[Any], str]) -> None:
        self._func = func

    def resolve(self, request: Any) -> str:
        return self._func(request)


class SessionAttributeResolver:
    """SessionIdentifierResolver reading an attribute of the Starlette session.

    Works with ``starlette.middleware.sessions.SessionMiddleware``, which
    stores the session dict in ``scope["session"]``. Requests without a
    session, or whose session lacks the attribute, resolve to ``""``.

    Args:
        attribute: Key of the session dict holding the identifier.
    """

    def __init__(self, attribute: str = "session_id") -> None:
        self._attribute = attribute

    def resolve(self, request: Any) -> str:
        scope = getattr(request, "scope", None) or {}
        session = scope.get("session") or {}
        value = session.get(self._attribute)
        return "" if value is None else str(value)


def as_secret_resolver(resolver: SecretResolver | Callable[[Any], str | Sequence[str]]) -> SecretResolver:
    """Return *resolver* unchanged if it is a SecretResolver, else wrap the callable."""
    if isinstance(resolver, SecretResolver):
        return resolver
    if callable(resolver):
        return CallableSecretResolver(resolver)
    raise CsrfConfigurationError(
        f"secret_resolver must be a SecretResolver or callable, got {type(resolver).__name__}",
        code="ECSRFCONFIG",
    )


def as_session_identifier_resolver(
    resolver: SessionIdentifierResolver | Callable[[Any], str],
) -> SessionIdentifierResolver:
    """Return *resolver* unchanged if it is a SessionIdentifierResolver, else wrap the callable."""
    if isinstance(resolver, SessionIdentifierResolver):
        return resolver
    if callable(resolver):
        return CallableSessionIdentifierResolver(resolver)
    raise CsrfConfigurationError(
        f"session_identifier_resolver must be a SessionIdentifierResolver or callable, got {type(resolver).__name__}",
        code="ECSRFCONFIG",
    )
