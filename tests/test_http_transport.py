"""
Tests for TransportExecutor.

Round trips run against a local aiohttp test server so that headers, bodies and
cancellation are exercised through a real ClientSession.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from aiohttp import ClientSession, hdrs

from social.graze.authclient.config import Settings
from social.graze.authclient.http.cancellation import (
    CancellationToken,
    OperationCancelledError,
)
from social.graze.authclient.http.chain import RequestMiddlewareBase
from social.graze.authclient.http.client import (
    DefaultHttpClientFactory,
    SharedHttpClientFactory,
)
from social.graze.authclient.http.request import FORM_URLENCODED, RequestBody
from social.graze.authclient.http.transport import TransportExecutor


class TestTransportExecutor:
    """Test single network round trips."""

    @pytest.mark.asyncio
    async def test_get_round_trip(self, recording_server):
        """Test a GET produces a response with status, headers, body and user agent."""
        async with DefaultHttpClientFactory(Settings(user_agent="ua-test/1")) as factory:
            executor = TransportExecutor(factory)

            response = await executor.execute(
                recording_server.url, {"X-Client-SKU": "authclient"}, None, "GET"
            )

        assert response.status == 200
        assert response.json() == {"attempt": 1}
        assert response.headers["X-Attempt"] == "1"
        assert response.user_agent == "ua-test/1"

        received = recording_server.requests[0]
        assert received["method"] == "GET"
        assert received["headers"]["X-Client-SKU"] == "authclient"
        assert received["headers"][hdrs.USER_AGENT] == "ua-test/1"

    @pytest.mark.asyncio
    async def test_no_default_accept_header(self, recording_server):
        """Test aiohttp's default Accept header is not sent."""
        async with DefaultHttpClientFactory(Settings()) as factory:
            executor = TransportExecutor(factory)
            await executor.execute(recording_server.url, {}, None, "GET")

        assert hdrs.ACCEPT not in recording_server.requests[0]["headers"]

    @pytest.mark.asyncio
    async def test_caller_accept_header_sent(self, recording_server):
        """Test the caller's Accept header is sent unchanged."""
        async with DefaultHttpClientFactory(Settings()) as factory:
            executor = TransportExecutor(factory)
            await executor.execute(
                recording_server.url, {"Accept": "application/json"}, None, "GET"
            )

        assert recording_server.requests[0]["headers"][hdrs.ACCEPT] == "application/json"

    @pytest.mark.asyncio
    async def test_post_form_body(self, recording_server):
        """Test a form body is sent with its content type."""
        body = RequestBody.from_form({"grant_type": "refresh_token", "refresh_token": "rt"})

        async with DefaultHttpClientFactory(Settings()) as factory:
            executor = TransportExecutor(factory)
            await executor.execute(recording_server.url, {}, body, "POST")

        received = recording_server.requests[0]
        assert received["method"] == "POST"
        assert received["body"] == b"grant_type=refresh_token&refresh_token=rt"
        assert received["headers"][hdrs.CONTENT_TYPE] == FORM_URLENCODED

    @pytest.mark.asyncio
    async def test_non_success_status_returned(self, recording_server):
        """Test the executor returns error statuses without raising."""
        recording_server.statuses = [503]

        async with DefaultHttpClientFactory(Settings()) as factory:
            executor = TransportExecutor(factory)
            response = await executor.execute(recording_server.url, {}, None, "GET")

        assert response.status == 503

    @pytest.mark.asyncio
    async def test_shared_session_is_reused(self, recording_server):
        """Test two calls go through the same session."""
        async with ClientSession() as session:
            factory = SharedHttpClientFactory(session)
            executor = TransportExecutor(factory)

            await executor.execute(recording_server.url, {}, None, "GET")
            await executor.execute(recording_server.url, {}, None, "GET")

            assert not session.closed

        assert len(recording_server.requests) == 2

    @pytest.mark.asyncio
    async def test_cancellation_aborts_network_wait(self, recording_server):
        """Test a fired token aborts the in-flight call promptly."""
        token = CancellationToken()
        token.cancel_after(0.05)

        async with DefaultHttpClientFactory(Settings()) as factory:
            executor = TransportExecutor(factory)
            loop = asyncio.get_running_loop()
            started = loop.time()

            with pytest.raises(OperationCancelledError):
                await executor.execute(recording_server.slow_url, {}, None, "GET", token)

            assert loop.time() - started < 0.9

    @pytest.mark.asyncio
    async def test_already_cancelled_token_sends_nothing(self, recording_server):
        """Test no request is sent once the token fired."""
        token = CancellationToken()
        token.cancel()

        async with DefaultHttpClientFactory(Settings()) as factory:
            executor = TransportExecutor(factory)
            with pytest.raises(OperationCancelledError):
                await executor.execute(recording_server.url, {}, None, "GET", token)

        assert recording_server.requests == []

    @pytest.mark.asyncio
    async def test_session_timeout_propagates(self, recording_server):
        """Test the session timeout surfaces as TimeoutError."""
        settings = Settings(http_timeout_total=0.05)

        async with DefaultHttpClientFactory(settings) as factory:
            executor = TransportExecutor(factory)
            with pytest.raises(TimeoutError):
                await executor.execute(recording_server.slow_url, {}, None, "GET")

    @pytest.mark.asyncio
    async def test_invalid_endpoint_fails_fast(self):
        """Test a missing endpoint raises before any I/O."""
        factory = Mock()
        executor = TransportExecutor(factory)

        with pytest.raises(ValueError):
            await executor.execute(None, {}, None, "GET")  # type: ignore[arg-type]

        assert not factory.mock_calls

    @pytest.mark.asyncio
    async def test_middleware_order(self, recording_server):
        """Test middleware wraps the send in declaration order."""
        calls = []

        class Recorder(RequestMiddlewareBase):
            def __init__(self, name):
                self.name = name

            async def handle(self, next, request):
                calls.append(f"{self.name}:before")
                response = await next(request)
                calls.append(f"{self.name}:after")
                return response

        async with DefaultHttpClientFactory(Settings()) as factory:
            executor = TransportExecutor(factory, middleware=[Recorder("a"), Recorder("b")])
            await executor.execute(recording_server.url, {}, None, "GET")

        assert calls == ["a:before", "b:before", "b:after", "a:after"]

    @pytest.mark.asyncio
    async def test_middleware_sees_built_request(self):
        """Test middleware receives the assembled request."""
        seen = []

        class Capture(RequestMiddlewareBase):
            async def handle(self, next, request):
                seen.append(request)
                raise ConnectionResetError("stop here")

        executor = TransportExecutor(Mock(), middleware=[Capture()])

        with pytest.raises(ConnectionResetError):
            await executor.execute(
                "https://login.example.com/token",
                {"X-Test": "1"},
                RequestBody.from_text("hi"),
                "post",
            )

        assert seen[0].method == "POST"
        assert seen[0].headers["X-Test"] == "1"
        assert seen[0].body.content == b"hi"

    @pytest.mark.asyncio
    async def test_client_factory_property(self):
        """Test the factory passed in is exposed."""
        factory = Mock()
        factory.session = AsyncMock()

        assert TransportExecutor(factory).client_factory is factory
