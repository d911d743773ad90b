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
"""WebFilterChainMiddleware — pure ASGI middleware running the WebFilter chain.

The downstream application's response is recorded and rebuilt as a
Starlette ``Response`` so filters can still add headers and cookies after
the handler has run. :class:`CsrfFilter` relies on this to attach the
tokens a handler minted.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import reduce
from typing import Any

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from doublecsrf.web.ports.filter import CallNext, WebFilter


class _ResponseRecorder:
    """ASGI ``send`` callable that keeps the response instead of sending it."""

    def __init__(self) -> None:
        self.status = 200
        self.headers: list[tuple[bytes, bytes]] = []
        self.chunks: list[bytes] = []

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status = message["status"]
            self.headers = list(message.get("headers", []))
        elif message["type"] == "http.response.body":
            self.chunks.append(message.get("body", b""))

    def to_response(self) -> Response:
        response = Response(content=b"".join(self.chunks), status_code=self.status)
        response.raw_headers = list(self.headers)
        return response


class WebFilterChainMiddleware:
    """Run :class:`WebFilter` instances around the application, first filter outermost.

    A filter whose ``should_not_filter()`` is true for a request is skipped
    for it. Websocket and lifespan scopes bypass the chain.

    Args:
        app: The wrapped ASGI application.
        filters: Filters in execution order.
    """

    def __init__(self, app: ASGIApp, filters: Sequence[WebFilter] = ()) -> None:
        self.app = app
        self._filters = list(filters)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def endpoint(request: Any) -> Response:
            recorder = _ResponseRecorder()
            await self.app(scope, receive, recorder)
            return recorder.to_response()

        handler: CallNext = reduce(_link, reversed(self._filters), endpoint)
        response = await handler(Request(scope, receive, send))
        await response(scope, receive, send)


def _link(next_call: CallNext, web_filter: WebFilter) -> CallNext:
    async def run(request: Any) -> Any:
        if web_filter.should_not_filter(request):
            return await next_call(request)
        return await web_filter.do_filter(request, next_call)

    return run
