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
"""WebFilter protocol — the seam between the CSRF guard and an HTTP stack.

Request and response are typed ``Any`` so Starlette types stay inside
``doublecsrf.web.adapters.starlette``.
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any, Protocol, runtime_checkable

# The rest of the chain: Callable[[Request], Coroutine[Any, Any, Response]]
CallNext = Callable[..., Coroutine[Any, Any, Any]]


@runtime_checkable
class WebFilter(Protocol):
    """Protocol for HTTP request/response filters.

    Filters run in list order inside ``WebFilterChainMiddleware``. A filter
    may short-circuit by returning a response without awaiting ``call_next``,
    which is how :class:`CsrfFilter` rejects forged requests.
    """

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Run the filter and return the response."""
        ...

    def should_not_filter(self, request: Any) -> bool:
        """Return ``True`` to bypass this filter for the given request."""
        ...
