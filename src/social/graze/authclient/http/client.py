"""
HTTP client factories.

The transport never creates a session per call: it asks a factory for the one
``ClientSession`` whose connection pool is shared by every in-flight request.
Factories are constructed explicitly at startup and passed by reference.
"""

import logging
from types import TracebackType
from typing import Optional, Protocol

from aiohttp import ClientSession, ClientTimeout, hdrs

from social.graze.authclient.config import Settings

logger = logging.getLogger(__name__)


class HttpClientFactory(Protocol):
    @property
    def session(self) -> ClientSession: ...


class DefaultHttpClientFactory:
    """
    Owns a single lazily created ClientSession.

    The session is built on first use, inside the running event loop, with the
    configured User-Agent and timeouts, and is reused until ``close``.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or Settings()
        self._session: Optional[ClientSession] = None
        self._closed = False

    @property
    def session(self) -> ClientSession:
        if self._closed:
            raise RuntimeError("HTTP client factory is closed")

        if self._session is None:
            timeout = ClientTimeout(
                total=self._settings.http_timeout_total,
                connect=self._settings.http_timeout_connect,
            )
            self._session = ClientSession(
                headers={hdrs.USER_AGENT: self._settings.user_agent},
                timeout=timeout,
            )
            logger.debug("Created shared HTTP client session")
        return self._session

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
        self._closed = True

    async def __aenter__(self) -> "DefaultHttpClientFactory":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __del__(self) -> None:
        session = getattr(self, "_session", None)
        if session is not None and not session.closed:
            logger.warning("HTTP client factory was not closed")


class SharedHttpClientFactory:
    """Wraps a session owned by the caller. The session is never closed here."""

    def __init__(self, session: ClientSession) -> None:
        self._session = session

    @property
    def session(self) -> ClientSession:
        return self._session
