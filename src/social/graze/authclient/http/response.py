import json
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Optional

from aiohttp import ClientResponse
from multidict import CIMultiDict, CIMultiDictProxy


@dataclass(frozen=True)
class HttpResponse:
    """Immutable result of one network attempt."""

    status: int
    headers: CIMultiDictProxy[str]
    body: Optional[str] = None
    user_agent: str = ""

    @staticmethod
    async def from_aiohttp_response(
        response: ClientResponse, user_agent: str = ""
    ) -> "HttpResponse":
        """Read the whole body as text and capture status and headers."""
        body = await response.text(errors="replace")

        return HttpResponse(
            status=response.status,
            headers=CIMultiDictProxy(CIMultiDict(response.headers)),
            body=body,
            user_agent=user_agent,
        )

    @property
    def reason(self) -> str:
        try:
            return HTTPStatus(self.status).phrase
        except ValueError:
            return "Unknown"

    @property
    def is_success(self) -> bool:
        return self.status == HTTPStatus.OK

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status < 600

    def body_contains(self, text: str) -> bool:
        if self.body is None:
            return False
        return text in self.body

    def json(self) -> Any:
        """
        Parse the body as JSON.

        Raises:
            ValueError: If the body is empty or not valid JSON
        """
        if self.body is None:
            raise ValueError("response has no body")
        return json.loads(self.body)
