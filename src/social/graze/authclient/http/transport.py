"""
Transport executor: exactly one network round trip per call.

The executor builds the request, sends it through the per-attempt middleware
chain using the factory's shared session, and reads the full reply into an
``HttpResponse``. It does not retry and does not classify failures: timeouts
(``TimeoutError``), connection failures (``aiohttp.ClientConnectionError``) and
a fired cancellation token (``OperationCancelledError``) reach the caller
unchanged.
"""

from typing import Mapping, Optional, Sequence

from aiohttp import hdrs
from aiohttp.http import SERVER_SOFTWARE

from social.graze.authclient.http.cancellation import CancellationToken
from social.graze.authclient.http.chain import (
    NextChainCallbackType,
    RequestMiddlewareBase,
)
from social.graze.authclient.http.client import HttpClientFactory
from social.graze.authclient.http.request import (
    HttpRequest,
    RequestBody,
    build_request,
)
from social.graze.authclient.http.response import HttpResponse
from social.graze.authclient.uri import EndpointType


class TransportExecutor:
    def __init__(
        self,
        client_factory: HttpClientFactory,
        middleware: Optional[Sequence[RequestMiddlewareBase]] = None,
    ) -> None:
        self._client_factory = client_factory
        self._middleware = list(middleware or [])

    @property
    def client_factory(self) -> HttpClientFactory:
        return self._client_factory

    async def execute(
        self,
        endpoint: EndpointType,
        headers: Optional[Mapping[str, str]],
        body: Optional[RequestBody],
        method: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> HttpResponse:
        """
        Perform one request and return its response.

        Args:
            endpoint: Absolute URL of the target
            headers: Caller headers
            body: Optional payload, sent as is
            method: HTTP method
            cancellation: Optional token aborting the network wait

        Returns:
            HttpResponse: The response of this attempt, whatever its status

        Raises:
            OperationCancelledError: If the token fired during the network wait
            TimeoutError: If the session timeout elapsed
            aiohttp.ClientConnectionError: On connection level failures
            aiohttp.ClientPayloadError: If the body was cut short
            ValueError: If the request cannot be built
        """
        request = build_request(endpoint, headers, body, method)
        chain_callback = self._build_chain()

        if cancellation is None:
            return await chain_callback(request)

        cancellation.raise_if_cancelled()
        return await cancellation.run(chain_callback(request))

    def _build_chain(self) -> NextChainCallbackType:
        chain_callback: NextChainCallbackType = self._send

        for mw in reversed(self._middleware):
            chain_callback = mw.handle_gen(chain_callback)

        return chain_callback

    async def _send(self, request: HttpRequest) -> HttpResponse:
        session = self._client_factory.session
        user_agent = session.headers.get(hdrs.USER_AGENT, SERVER_SOFTWARE)

        async with session.request(
            request.method,
            request.url,
            headers=request.headers,
            data=request.body.content if request.body is not None else None,
            skip_auto_headers=request.skip_auto_headers,
        ) as response:
            return await HttpResponse.from_aiohttp_response(
                response, user_agent=user_agent
            )
