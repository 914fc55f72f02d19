"""
Shared test configuration and fixtures for the auth client transport tests.

Provides request context and settings fixtures and a recording aiohttp test
server started on a random local port.
"""

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

from social.graze.authclient.config import Settings
from social.graze.authclient.context import RequestContext
from tests.test_helpers import RecordingServer


@pytest.fixture
def request_context() -> RequestContext:
    return RequestContext(client_name="tests", client_version="0.0.1")


@pytest.fixture
def settings() -> Settings:
    return Settings(user_agent="graze-authclient-tests/1.0", retry_delay_seconds=0.0)


@pytest_asyncio.fixture
async def recording_server():
    """Start a RecordingServer on a random local port."""
    recorder = RecordingServer()
    async with TestServer(recorder.app) as server:
        recorder.url = server.make_url("/echo")
        recorder.slow_url = server.make_url("/slow")
        recorder.truncated_url = server.make_url("/truncated")
        yield recorder
