"""Exception hierarchy for doublecsrf.

All package exceptions inherit from DoubleCsrfException, so callers can
catch the base class to handle every error raised here, or a specific
subclass for targeted handling.

Categories:
- SecurityException: request rejected on security grounds
- CsrfConfigurationError: the guard was set up with unusable options
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from doublecsrf.security.guard import CsrfErrorConfig


# =============================================================================
# Base Exception
# =============================================================================


class DoubleCsrfException(Exception):
    """Base exception for all doublecsrf errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "EBADCSRFTOKEN").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(DoubleCsrfException):
    """Authentication and authorization errors."""

    status_code: int = 401


class ForbiddenException(SecurityException):
    """The caller is not allowed to perform the operation."""

    status_code: int = 403


class InvalidCsrfTokenError(ForbiddenException):
    """The request carried no usable CSRF token, or reuse of one was impossible.

    Raised when a protected request fails validation, and when token
    generation is asked to reuse an existing cookie that does not verify.
    The status code, message and code are taken from the guard's error
    configuration so applications can reshape the error.

    ``csrf_context`` is the per-request :class:`CsrfContext` created by
    the guard before it rejected the request, or ``None`` when the error
    was raised from token generation.
    """

    def __init__(
        self,
        message: str = "invalid csrf token",
        code: str | None = "EBADCSRFTOKEN",
        status_code: int = 403,
        context: dict | None = None,
    ) -> None:
        super().__init__(message, code=code, context=context)
        self.status_code = status_code
        self.csrf_context: Any = None

    @classmethod
    def from_config(cls, config: CsrfErrorConfig) -> InvalidCsrfTokenError:
        """Build the error described by an error configuration."""
        return cls(config.message, code=config.code, status_code=config.status_code)


# =============================================================================
# Configuration Exceptions
# =============================================================================


class CsrfConfigurationError(DoubleCsrfException, ValueError):
    """The guard, its resolvers or its options are misconfigured."""
