from abc import ABC, abstractmethod
import logging
from time import time
from typing import Awaitable, Callable, Mapping

import sentry_sdk
from aiohttp import ClientConnectionError, ClientPayloadError

from social.graze.authclient.http.cancellation import OperationCancelledError
from social.graze.authclient.http.request import HttpRequest
from social.graze.authclient.http.response import HttpResponse
from social.graze.authclient.metrics import MetricsClient

logger = logging.getLogger(__name__)

NextChainCallbackType = Callable[[HttpRequest], Awaitable[HttpResponse]]

RETRYABLE_EXCEPTIONS = (
    OperationCancelledError,
    TimeoutError,
    ClientConnectionError,
    ClientPayloadError,
)
"""Exceptions raised by one attempt that are worth a second attempt."""

_MASKED_HEADERS = frozenset({"authorization", "cookie", "set-cookie", "dpop"})


def mask_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of ``headers`` safe to log."""
    return {
        name: "****" if name.lower() in _MASKED_HEADERS else value
        for name, value in headers.items()
    }


class RequestMiddlewareBase(ABC):
    @abstractmethod
    async def handle(
        self, next: NextChainCallbackType, request: HttpRequest
    ) -> HttpResponse:
        pass

    def handle_gen(self, next: NextChainCallbackType) -> NextChainCallbackType:
        async def next_invoke(request: HttpRequest) -> HttpResponse:
            return await self.handle(next, request)

        return next_invoke


class StatsdMiddleware(RequestMiddlewareBase):
    """Records the duration and count of every attempt."""

    def __init__(self, metrics_client: MetricsClient, prefix: str = "authclient") -> None:
        super().__init__()
        self._metrics_client = metrics_client
        self._prefix = prefix

    async def handle(
        self, next: NextChainCallbackType, request: HttpRequest
    ) -> HttpResponse:
        tags = {"method": request.method.lower()}
        start_time = time()
        try:
            response = await next(request)
            tags["status"] = str(response.status)
            return response
        except RETRYABLE_EXCEPTIONS:
            tags["status"] = "error"
            raise
        except Exception as e:
            sentry_sdk.capture_exception(e)
            tags["status"] = "error"
            raise
        finally:
            self._metrics_client.timer(
                f"{self._prefix}.client.request.time",
                time() - start_time,
                tag_dict=tags,
            )
            self._metrics_client.increment(
                f"{self._prefix}.client.request.count", 1, tag_dict=tags
            )


class DebugMiddleware(RequestMiddlewareBase):
    async def handle(
        self, next: NextChainCallbackType, request: HttpRequest
    ) -> HttpResponse:
        logger.debug(
            f"Request: {request.method} {request.url} {mask_headers(request.headers)} "
            f"body_bytes={len(request.body) if request.body is not None else 0}"
        )
        response = await next(request)
        logger.debug(f"Response: {response.status} {response.reason}")
        return response
