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
"""Tests for CsrfFilter — unit level and inside a Starlette application."""

from __future__ import annotations

import json
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route
from starlette.testclient import TestClient

from doublecsrf.kernel.exceptions import DoubleCsrfException
from doublecsrf.security.csrf import CSRF_COOKIE_NAME
from doublecsrf.security.guard import (
    CsrfConfig,
    CsrfErrorConfig,
    DoubleCsrf,
    GenerateTokenOptions,
    ProtectionState,
)
from doublecsrf.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from doublecsrf.web.adapters.starlette.filters.csrf_filter import CsrfFilter
from doublecsrf.web.errors import csrf_exception_handler

HEADER = "x-csrf-token"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_guard(**kwargs) -> DoubleCsrf:
    return DoubleCsrf(
        lambda request: ["s1"],
        lambda request: request.headers.get("x-session-id", ""),
        **kwargs,
    )


def _make_request(
    method: str = "POST",
    path: str = "/api/test",
    cookies: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
) -> SimpleNamespace:
    """Build a lightweight mock request compatible with the filter."""
    return SimpleNamespace(
        method=method,
        url=SimpleNamespace(path=path),
        cookies=cookies or {},
        headers=headers or {},
        state=SimpleNamespace(),
    )


def _token_for(guard: DoubleCsrf) -> str:
    """Issue a token; the cookie value is the token itself."""
    return guard.generate_csrf_token(_make_request(method="GET"), Response())


# ---------------------------------------------------------------------------
# do_filter
# ---------------------------------------------------------------------------


class TestCsrfFilter:
    @pytest.mark.asyncio
    async def test_safe_method_passes_and_stores_context(self) -> None:
        csrf_filter = CsrfFilter(_make_guard())
        request = _make_request(method="GET")
        response = Response(content="ok")
        call_next = AsyncMock(return_value=response)

        result = await csrf_filter.do_filter(request, call_next)

        call_next.assert_awaited_once_with(request)
        assert result is response
        assert request.state.csrf.state is ProtectionState.IGNORED
        assert "set-cookie" not in result.headers

    @pytest.mark.asyncio
    async def test_unsafe_method_without_token_is_rejected(self) -> None:
        csrf_filter = CsrfFilter(_make_guard())
        request = _make_request()
        call_next = AsyncMock()

        result = await csrf_filter.do_filter(request, call_next)

        assert result.status_code == 403
        call_next.assert_not_awaited()
        body = json.loads(result.body)
        assert body["error"]["code"] == "EBADCSRFTOKEN"
        assert body["error"]["message"] == "invalid csrf token"
        assert body["error"]["path"] == "/api/test"
        assert request.state.csrf.state is ProtectionState.REJECTED

    @pytest.mark.asyncio
    async def test_mismatched_token_is_rejected(self) -> None:
        guard = _make_guard()
        cookie = _token_for(guard)
        csrf_filter = CsrfFilter(guard)
        request = _make_request(cookies={CSRF_COOKIE_NAME: cookie}, headers={HEADER: "other"})
        call_next = AsyncMock()

        result = await csrf_filter.do_filter(request, call_next)

        assert result.status_code == 403
        call_next.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_valid_token_passes(self) -> None:
        guard = _make_guard()
        cookie = token = _token_for(guard)
        csrf_filter = CsrfFilter(guard)
        request = _make_request(cookies={CSRF_COOKIE_NAME: cookie}, headers={HEADER: token})
        response = Response(content="created", status_code=201)
        call_next = AsyncMock(return_value=response)

        result = await csrf_filter.do_filter(request, call_next)

        call_next.assert_awaited_once_with(request)
        assert result is response
        assert request.state.csrf.state is ProtectionState.VALIDATED

    @pytest.mark.asyncio
    async def test_tokens_minted_by_handler_land_on_response(self) -> None:
        csrf_filter = CsrfFilter(_make_guard())
        request = _make_request(method="GET")
        minted: list[str] = []

        async def _handler(req):
            minted.append(req.state.csrf.generate_token())
            return JSONResponse({"token": minted[0]})

        result = await csrf_filter.do_filter(request, _handler)

        assert result.headers["set-cookie"].startswith(f"{CSRF_COOKIE_NAME}={minted[0]}")

    @pytest.mark.asyncio
    async def test_custom_error_status(self) -> None:
        config = CsrfConfig(error=CsrfErrorConfig(status_code=419, message="csrf mismatch", code="ERR_CSRF"))
        csrf_filter = CsrfFilter(_make_guard(config=config))

        result = await csrf_filter.do_filter(_make_request(), AsyncMock())

        assert result.status_code == 419
        body = json.loads(result.body)
        assert body["error"]["code"] == "ERR_CSRF"
        assert body["error"]["status"] == 419

    @pytest.mark.asyncio
    async def test_skip_predicate_is_honoured(self) -> None:
        guard = _make_guard(skip_csrf_protection=lambda request: request.url.path == "/webhooks/stripe")
        csrf_filter = CsrfFilter(guard)
        request = _make_request(path="/webhooks/stripe")
        call_next = AsyncMock(return_value=Response())

        await csrf_filter.do_filter(request, call_next)

        call_next.assert_awaited_once_with(request)
        assert request.state.csrf.state is ProtectionState.SKIPPED

    @pytest.mark.asyncio
    async def test_rejection_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        csrf_filter = CsrfFilter(_make_guard())

        with caplog.at_level(logging.WARNING, logger="doublecsrf.web.adapters.starlette.filters.csrf_filter"):
            await csrf_filter.do_filter(_make_request(path="/api/orders"), AsyncMock())

        assert "invalid CSRF token" in caplog.text
        assert "/api/orders" in caplog.text

    def test_health_paths_are_excluded_by_default(self) -> None:
        csrf_filter = CsrfFilter(_make_guard())
        assert csrf_filter.should_not_filter(_make_request(path="/health")) is True
        assert csrf_filter.should_not_filter(_make_request(path="/api/test")) is False

    def test_exclude_patterns_can_be_replaced(self) -> None:
        csrf_filter = CsrfFilter(_make_guard(), exclude_patterns=["/public/*"])
        assert csrf_filter.should_not_filter(_make_request(path="/public/form")) is True
        assert csrf_filter.should_not_filter(_make_request(path="/health")) is False


# ---------------------------------------------------------------------------
# Starlette integration
# ---------------------------------------------------------------------------


async def _issue_token(request: Request) -> JSONResponse:
    overwrite = request.query_params.get("overwrite") == "true"
    token = request.state.csrf.generate_token(GenerateTokenOptions(overwrite=overwrite))
    return JSONResponse({"token": token})


async def _protected(request: Request) -> PlainTextResponse:
    return PlainTextResponse("ok")


def _make_app(guard: DoubleCsrf) -> Starlette:
    return Starlette(
        routes=[
            Route("/csrf-token", _issue_token, methods=["GET"]),
            Route("/protected", _protected, methods=["POST"]),
            Route("/health", _protected, methods=["POST"]),
        ],
        middleware=[Middleware(WebFilterChainMiddleware, filters=[CsrfFilter(guard)])],
        exception_handlers={DoubleCsrfException: csrf_exception_handler},
    )


def _client(guard: DoubleCsrf | None = None) -> TestClient:
    # Secure cookies are only sent back over https.
    return TestClient(_make_app(guard or _make_guard()), base_url="https://testserver")


class TestCsrfFilterIntegration:
    def test_token_endpoint_sets_cookie(self) -> None:
        client = _client()
        resp = client.get("/csrf-token")

        assert resp.status_code == 200
        token = resp.json()["token"]
        assert client.cookies.get(CSRF_COOKIE_NAME) == token

    def test_post_with_token_succeeds(self) -> None:
        client = _client()
        token = client.get("/csrf-token").json()["token"]

        resp = client.post("/protected", headers={HEADER: token})

        assert resp.status_code == 200
        assert resp.text == "ok"

    def test_post_without_token_is_forbidden(self) -> None:
        client = _client()
        client.get("/csrf-token")

        resp = client.post("/protected")

        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "EBADCSRFTOKEN"

    def test_post_with_wrong_token_is_forbidden(self) -> None:
        client = _client()
        client.get("/csrf-token")

        resp = client.post("/protected", headers={HEADER: "forged.token"})

        assert resp.status_code == 403

    def test_token_is_reused_until_overwritten(self) -> None:
        client = _client()
        first = client.get("/csrf-token").json()["token"]

        assert client.get("/csrf-token").json()["token"] == first

        rotated = client.get("/csrf-token", params={"overwrite": "true"}).json()["token"]
        assert rotated != first
        assert client.post("/protected", headers={HEADER: rotated}).status_code == 200
        assert client.post("/protected", headers={HEADER: first}).status_code == 403

    def test_token_bound_to_session(self) -> None:
        client = _client()
        token = client.get("/csrf-token", headers={"x-session-id": "sess-1"}).json()["token"]

        ok = client.post("/protected", headers={HEADER: token, "x-session-id": "sess-1"})
        other = client.post("/protected", headers={HEADER: token, "x-session-id": "sess-2"})

        assert ok.status_code == 200
        assert other.status_code == 403

    def test_reuse_failure_in_handler_is_rendered(self) -> None:
        client = _client()
        token = client.get("/csrf-token", headers={"x-session-id": "sess-1"}).json()["token"]
        assert token

        # Session changed, cookie no longer verifies, and validate_on_reuse is on.
        resp = client.get("/csrf-token", headers={"x-session-id": "sess-2"})

        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "EBADCSRFTOKEN"

    def test_excluded_path_is_not_protected(self) -> None:
        resp = _client().post("/health")
        assert resp.status_code == 200
