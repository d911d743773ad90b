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
"""Exception handler — structured JSON error responses for CSRF failures.

Register with Starlette so handlers that call ``generate_token()`` and hit
the reuse failure answer with the configured status::

    Starlette(exception_handlers={DoubleCsrfException: csrf_exception_handler})
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from doublecsrf.kernel.exceptions import (
    CsrfConfigurationError,
    DoubleCsrfException,
    SecurityException,
)

logger = logging.getLogger(__name__)


def _get_status_code(exc: Exception) -> int:
    """Map an exception to an HTTP status code."""
    if isinstance(exc, SecurityException):
        return int(getattr(exc, "status_code", 403))
    return 500


def error_body(request: Any, exc: DoubleCsrfException, status: int) -> dict[str, Any]:
    """Build the JSON error envelope for *exc*."""
    transaction_id = getattr(request.state, "transaction_id", None) or str(uuid.uuid4())
    body: dict[str, Any] = {
        "error": {
            "message": str(exc),
            "code": exc.code or type(exc).__name__,
            "transaction_id": transaction_id,
            "timestamp": datetime.now(UTC).isoformat(),
            "status": status,
            "path": request.url.path,
        }
    }
    if exc.context:
        body["error"]["context"] = exc.context
    return body


async def csrf_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render doublecsrf exceptions as JSON; anything else as a 500."""
    if isinstance(exc, CsrfConfigurationError):
        # The client only sees a generic 500; details go to the log.
        logger.error("CSRF guard misconfigured: %s %s", request.method, request.url.path, exc_info=exc)
        status = 500
        body: dict[str, Any] = error_body(
            request, DoubleCsrfException("Internal server error", code="INTERNAL_ERROR"), status
        )
    elif isinstance(exc, DoubleCsrfException):
        status = _get_status_code(exc)
        body = error_body(request, exc, status)
    else:
        logger.error("Unhandled error: %s %s", request.method, request.url.path, exc_info=exc)
        status = 500
        body = error_body(request, DoubleCsrfException("Internal server error", code="INTERNAL_ERROR"), status)

    return JSONResponse(body, status_code=status)
