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
"""CsrfFilter — double-submit cookie CSRF protection for Starlette apps.

For every request the filter asks the :class:`DoubleCsrf` guard to
``protect`` it:

* **Ignored methods** (GET, HEAD, OPTIONS by default) and requests the
  skip predicate exempts pass straight through.
* **All other methods** must present, in the ``x-csrf-token`` header (or
  the configured token source), the exact token held in the verifier
  cookie, and that token must verify for the current secrets and session.
  Otherwise the filter answers with the configured error status (403).

In every case the per-request :class:`CsrfContext` is stored on
``request.state.csrf``; handlers mint tokens with
``request.state.csrf.generate_token()`` and the cookie lands on their
response.

Usage::

    guard = DoubleCsrf(secret_resolver, session_identifier_resolver)
    app = Starlette(
        routes=routes,
        middleware=[Middleware(WebFilterChainMiddleware, filters=[CsrfFilter(guard)])],
    )
"""

from __future__ import annotations

import logging
from typing import Any

from starlette.responses import JSONResponse

from doublecsrf.kernel.exceptions import InvalidCsrfTokenError
from doublecsrf.security.cookies import PendingCookies
from doublecsrf.security.guard import DoubleCsrf
from doublecsrf.web.errors import error_body
from doublecsrf.web.filters import OncePerRequestFilter
from doublecsrf.web.ports.filter import CallNext

logger = logging.getLogger(__name__)

CSRF_STATE_ATTRIBUTE = "csrf"
"""Name of the ``request.state`` attribute holding the :class:`CsrfContext`."""


class CsrfFilter(OncePerRequestFilter):
    """WebFilter enforcing :meth:`DoubleCsrf.protect` on each request.

    Args:
        guard: The configured CSRF guard.
        exclude_patterns: Glob patterns of paths the filter never sees.
    """

    exclude_patterns = ["/health", "/ready"]

    def __init__(self, guard: DoubleCsrf, exclude_patterns: list[str] | None = None) -> None:
        self._guard = guard
        if exclude_patterns is not None:
            self.exclude_patterns = list(exclude_patterns)

    @property
    def guard(self) -> DoubleCsrf:
        return self._guard

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        pending = PendingCookies()

        try:
            context = self._guard.protect(request, pending)
        except InvalidCsrfTokenError as exc:
            setattr(request.state, CSRF_STATE_ATTRIBUTE, exc.csrf_context)
            logger.warning(
                "Rejected request with invalid CSRF token: %s %s",
                request.method,
                request.url.path,
            )
            return JSONResponse(error_body(request, exc, exc.status_code), status_code=exc.status_code)

        setattr(request.state, CSRF_STATE_ATTRIBUTE, context)
        logger.debug(
            "CSRF check passed (%s): %s %s",
            context.state.name.lower(),
            request.method,
            request.url.path,
        )

        response = await call_next(request)
        return pending.apply_to(response)
