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
"""CSRF token engine — HMAC-bound double-submit tokens.

A token has the form ``<hmac><token_delimiter><random_value>`` where the
HMAC is keyed with a server secret and covers a length-prefixed message
built from the session identifier and the random value::

    message = "!".join([len(session_id), session_id, len(random_value), random_value])

Length prefixes keep the message unambiguous when the session identifier
or the random value themselves contain the delimiter. Because the HMAC can
be recomputed from (secret, session id, random value), no server-side token
store is needed: the token is self-contained and the cookie simply holds a
copy of it.

Comparisons use :func:`hmac.compare_digest` over UTF-8 bytes, so non-ASCII
input from a client compares unequal instead of raising.
"""

from __future__ import annotations

import hmac
import secrets
from collections.abc import Sequence

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
CSRF_COOKIE_NAME: str = "__Host-doublecsrf.x-csrf-token"
"""Default name of the cookie that carries the verifier token."""

CSRF_HEADER_NAME: str = "x-csrf-token"
"""Default request header that carries the client-presented token."""

IGNORED_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS"})
"""HTTP methods that do not require CSRF validation by default."""

DEFAULT_MESSAGE_DELIMITER: str = "!"
DEFAULT_TOKEN_DELIMITER: str = "."
DEFAULT_HMAC_ALGORITHM: str = "sha256"
DEFAULT_RANDOM_VALUE_SIZE: int = 32


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------
def generate_random_value(size_bytes: int = DEFAULT_RANDOM_VALUE_SIZE) -> str:
    """Return *size_bytes* cryptographically-secure random bytes, hex-encoded."""
    return secrets.token_hex(size_bytes)


def build_message(
    session_id: str,
    random_value: str,
    message_delimiter: str = DEFAULT_MESSAGE_DELIMITER,
) -> str:
    """Build the length-prefixed message that the HMAC is computed over."""
    return message_delimiter.join(
        [str(len(session_id)), session_id, str(len(random_value)), random_value]
    )


def compute_hmac(
    secret: str,
    session_id: str,
    random_value: str,
    *,
    algorithm: str = DEFAULT_HMAC_ALGORITHM,
    message_delimiter: str = DEFAULT_MESSAGE_DELIMITER,
) -> str:
    """Compute the hex-encoded HMAC binding *random_value* to *session_id*.

    Args:
        secret: The server secret used as the HMAC key.
        session_id: Identifier of the client's session (may be empty).
        random_value: The per-token random value.
        algorithm: Any fixed-length digest name accepted by :func:`hmac.new`.
        message_delimiter: Separator used when building the message.

    Returns:
        The HMAC digest as a lowercase hex string.
    """
    message = build_message(session_id, random_value, message_delimiter)
    return hmac.new(secret.encode(), message.encode("utf-8", "surrogatepass"), algorithm).hexdigest()


def build_token(
    secret: str,
    session_id: str,
    random_value: str,
    *,
    algorithm: str = DEFAULT_HMAC_ALGORITHM,
    message_delimiter: str = DEFAULT_MESSAGE_DELIMITER,
    token_delimiter: str = DEFAULT_TOKEN_DELIMITER,
) -> str:
    """Build the CSRF token ``<hmac><token_delimiter><random_value>``."""
    digest = compute_hmac(
        secret,
        session_id,
        random_value,
        algorithm=algorithm,
        message_delimiter=message_delimiter,
    )
    return f"{digest}{token_delimiter}{random_value}"


def split_token(token: object, token_delimiter: str = DEFAULT_TOKEN_DELIMITER) -> tuple[str, str] | None:
    """Split *token* into ``(hmac, random_value)``.

    Splits on the first delimiter only. Returns ``None`` when *token* is
    not a string, has no delimiter, or either half is empty.
    """
    if not isinstance(token, str):
        return None
    digest, sep, random_value = token.partition(token_delimiter)
    if not sep or not digest or not random_value:
        return None
    return digest, random_value


def tokens_equal(a: str, b: str) -> bool:
    """Compare two token strings in constant time."""
    return hmac.compare_digest(a.encode("utf-8", "surrogatepass"), b.encode("utf-8", "surrogatepass"))


def verify_token(
    possible_secrets: Sequence[str],
    session_id: str,
    token: object,
    *,
    algorithm: str = DEFAULT_HMAC_ALGORITHM,
    message_delimiter: str = DEFAULT_MESSAGE_DELIMITER,
    token_delimiter: str = DEFAULT_TOKEN_DELIMITER,
) -> bool:
    """Check that *token* was issued for *session_id* under one of *possible_secrets*.

    Secrets are tried in order; the first match wins. Malformed tokens
    yield ``False`` rather than raising.
    """
    parts = split_token(token, token_delimiter)
    if parts is None:
        return False
    digest, random_value = parts

    for secret in possible_secrets:
        expected = compute_hmac(
            secret,
            session_id,
            random_value,
            algorithm=algorithm,
            message_delimiter=message_delimiter,
        )
        if tokens_equal(expected, digest):
            return True
    return False
