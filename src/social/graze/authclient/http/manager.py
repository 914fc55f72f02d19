"""
HTTP manager: the retrying public surface of the transport.

``HttpManager`` is the only entry point used by the token acquisition layer.
Each logical call runs a bounded loop of at most ``RetryPolicy.max_attempts``
attempts (two by default):

1. The body is cloned, the clone is handed to the transport executor
2. A 200 response is returned at once
3. A 5xx response, a timeout, a fired cancellation token, a connection failure
   or a body cut short is retryable; any other status is returned as data
4. Before the next attempt the manager logs, waits a flat delay and starts over
   from the original body
5. When no attempt is left, a timeout/cancellation cause raises a
   ``request_timeout`` client error, repeated 5xx responses raise a
   ``service_not_available`` service error (or are returned in no-throw mode)

A fired cancellation token still goes through the delay and the second
attempt, which then fails before any network I/O and ends the call with
``request_timeout``.

All state is local to the call. Diagnostics are written through the
``RequestContext`` and are advisory only.
"""

from asyncio import sleep
from dataclasses import dataclass
from http import HTTPStatus
from types import TracebackType
from typing import Iterable, Mapping, Optional, Tuple, Union

from aiohttp import hdrs

from social.graze.authclient.config import Settings
from social.graze.authclient.context import RequestContext
from social.graze.authclient.errors import (
    REQUEST_TIMEOUT,
    SERVICE_NOT_AVAILABLE,
    get_client_error,
    get_service_error,
)
from social.graze.authclient.http.cancellation import CancellationToken
from social.graze.authclient.http.chain import (
    RETRYABLE_EXCEPTIONS,
    DebugMiddleware,
    RequestMiddlewareBase,
    StatsdMiddleware,
)
from social.graze.authclient.http.client import (
    DefaultHttpClientFactory,
    HttpClientFactory,
)
from social.graze.authclient.http.request import RequestBody
from social.graze.authclient.http.response import HttpResponse
from social.graze.authclient.http.transport import TransportExecutor
from social.graze.authclient.messages import (
    HTTP_REQUEST_UNSUCCESSFUL,
    REQUEST_TIMED_OUT,
    RETRY_FAILED,
    RETRYING_REQUEST,
    SERVICE_UNAVAILABLE,
)
from social.graze.authclient.metrics import MetricsClient, NoOpMetricsClient
from social.graze.authclient.uri import EndpointType, append_query_parameters

PostBodyType = Union[
    RequestBody, Mapping[str, str], Iterable[Tuple[str, str]], bytes, str, None
]


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt ceiling and flat delay between attempts."""

    max_attempts: int = 2
    delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay must not be negative")

    @staticmethod
    def from_settings(settings: Settings) -> "RetryPolicy":
        return RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            delay=settings.retry_delay_seconds,
        )


def coerce_body(body: PostBodyType) -> Optional[RequestBody]:
    """Turn the accepted POST body shapes into a ``RequestBody``."""
    if body is None or isinstance(body, RequestBody):
        return body
    if isinstance(body, (bytes, bytearray)):
        return RequestBody.from_bytes(bytes(body))
    if isinstance(body, str):
        return RequestBody.from_text(body)
    return RequestBody.from_form(body)


class HttpManager:
    def __init__(
        self,
        client_factory: Optional[HttpClientFactory] = None,
        executor: Optional[TransportExecutor] = None,
        retry_policy: Optional[RetryPolicy] = None,
        metrics_client: Optional[MetricsClient] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or Settings()
        self._metrics_client = metrics_client or NoOpMetricsClient()
        self._retry_policy = retry_policy or RetryPolicy.from_settings(self._settings)

        self._owned_factory: Optional[DefaultHttpClientFactory] = None
        if executor is None:
            if client_factory is None:
                self._owned_factory = DefaultHttpClientFactory(self._settings)
                client_factory = self._owned_factory

            middleware: list[RequestMiddlewareBase] = [
                StatsdMiddleware(self._metrics_client, prefix=self._settings.statsd_prefix)
            ]
            if self._settings.debug:
                middleware.append(DebugMiddleware())
            executor = TransportExecutor(client_factory, middleware=middleware)

        self._executor = executor

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    async def send_post(
        self,
        endpoint: EndpointType,
        headers: Optional[Mapping[str, str]],
        body: PostBodyType,
        request_context: RequestContext,
        cancellation: Optional[CancellationToken] = None,
    ) -> HttpResponse:
        """
        POST a form or raw body.

        ``body`` is either a ``RequestBody`` sent as is, form fields (a mapping
        or key/value pairs) encoded as ``application/x-www-form-urlencoded``,
        raw bytes, or text.
        """
        return await self.execute_with_retry(
            endpoint,
            headers,
            coerce_body(body),
            hdrs.METH_POST,
            request_context,
            cancellation=cancellation,
        )

    async def send_get(
        self,
        endpoint: EndpointType,
        headers: Optional[Mapping[str, str]],
        request_context: RequestContext,
        cancellation: Optional[CancellationToken] = None,
        query: Union[str, Mapping[str, str], None] = None,
    ) -> HttpResponse:
        if query:
            endpoint = append_query_parameters(endpoint, query)
        return await self.execute_with_retry(
            endpoint,
            headers,
            None,
            hdrs.METH_GET,
            request_context,
            cancellation=cancellation,
        )

    async def send_post_no_throw(
        self,
        endpoint: EndpointType,
        headers: Optional[Mapping[str, str]],
        body: PostBodyType,
        request_context: RequestContext,
        cancellation: Optional[CancellationToken] = None,
    ) -> HttpResponse:
        """
        POST like ``send_post`` but never raise ``service_not_available``.

        When every attempt ends with a 5xx response, the last response is
        returned instead. Timeouts still raise ``request_timeout``.
        """
        return await self.execute_with_retry(
            endpoint,
            headers,
            coerce_body(body),
            hdrs.METH_POST,
            request_context,
            do_not_throw=True,
            cancellation=cancellation,
        )

    async def execute_with_retry(
        self,
        endpoint: EndpointType,
        headers: Optional[Mapping[str, str]],
        body: Optional[RequestBody],
        method: str,
        request_context: RequestContext,
        do_not_throw: bool = False,
        cancellation: Optional[CancellationToken] = None,
    ) -> HttpResponse:
        """
        Send a request, retrying transient failures.

        Args:
            endpoint: Absolute URL of the target
            headers: Headers copied into every attempt
            body: Optional payload; each attempt sends a fresh clone
            method: HTTP method
            request_context: Per-call context used for diagnostics
            do_not_throw: Return the last response instead of raising when
                every attempt ended with a 5xx status
            cancellation: Optional token aborting the network wait of each attempt

        Returns:
            HttpResponse: A 200 response, a non-retryable response, or in
            no-throw mode the last 5xx response

        Raises:
            AuthClientError: ``request_timeout`` when the last attempt timed out,
                failed to connect, lost its body, or was cancelled
            AuthServiceError: ``service_not_available`` when every attempt
                returned a 5xx status
            ValueError: If the endpoint or the request context is missing
        """
        if request_context is None:
            raise ValueError("request_context is required")

        response: Optional[HttpResponse] = None
        cause: Optional[BaseException] = None
        max_attempts = self._retry_policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            cause = None
            attempt_body = body.clone() if body is not None else None

            try:
                response = await self._executor.execute(
                    endpoint, headers, attempt_body, method, cancellation
                )
            except RETRYABLE_EXCEPTIONS as e:
                request_context.error("%s: %s", type(e).__name__, e)
                cause = e
            else:
                if response.status == HTTPStatus.OK:
                    return response

                request_context.info(
                    HTTP_REQUEST_UNSUCCESSFUL, response.status, response.reason
                )
                if not response.is_server_error:
                    return response

            if attempt == max_attempts:
                break

            request_context.info(RETRYING_REQUEST)
            self._metrics_client.increment(
                f"{self._settings.statsd_prefix}.client.request.retry",
                1,
                tag_dict={"method": method.lower()},
            )
            # flat delay, not raced against the token
            await sleep(self._retry_policy.delay)

        request_context.info(RETRY_FAILED)

        if cause is not None:
            raise get_client_error(REQUEST_TIMEOUT, REQUEST_TIMED_OUT, cause=cause)

        if do_not_throw:
            return response  # type: ignore[return-value]

        raise get_service_error(
            SERVICE_NOT_AVAILABLE, SERVICE_UNAVAILABLE, response=response
        )

    async def close(self) -> None:
        """Close the HTTP client factory if this manager created it."""
        if self._owned_factory is not None:
            await self._owned_factory.close()

    async def __aenter__(self) -> "HttpManager":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
