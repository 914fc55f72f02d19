"""
Request builder.

``RequestBody`` is an immutable, independently replayable payload: an owned
byte buffer plus its content headers. ``build_request`` combines an endpoint, a
header set and an optional body into an ``HttpRequest`` ready for the
transport. Building is pure and performs no I/O.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode

from aiohttp import hdrs
from multidict import CIMultiDict
from yarl import URL

from social.graze.authclient.uri import EndpointType, ensure_absolute

FORM_URLENCODED = "application/x-www-form-urlencoded"

FormFields = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


@dataclass(frozen=True)
class RequestBody:
    content: bytes
    headers: Tuple[Tuple[str, str], ...] = ()

    @staticmethod
    def from_form(fields: FormFields) -> "RequestBody":
        """Encode key/value pairs as ``application/x-www-form-urlencoded``."""
        pairs = fields.items() if isinstance(fields, Mapping) else fields
        return RequestBody(
            content=urlencode(list(pairs)).encode("ascii"),
            headers=((hdrs.CONTENT_TYPE, FORM_URLENCODED),),
        )

    @staticmethod
    def from_text(
        text: str, media_type: str = "text/plain", encoding: str = "utf-8"
    ) -> "RequestBody":
        return RequestBody(
            content=text.encode(encoding),
            headers=((hdrs.CONTENT_TYPE, f"{media_type}; charset={encoding}"),),
        )

    @staticmethod
    def from_bytes(
        data: bytes, content_type: str = "application/octet-stream"
    ) -> "RequestBody":
        return RequestBody(
            content=bytes(data),
            headers=((hdrs.CONTENT_TYPE, content_type),),
        )

    @property
    def content_type(self) -> Optional[str]:
        for name, value in self.headers:
            if name.lower() == hdrs.CONTENT_TYPE.lower():
                return value
        return None

    def clone(self) -> "RequestBody":
        """Return a byte-identical copy carrying the same content headers."""
        return RequestBody(
            content=bytes(bytearray(self.content)),
            headers=tuple((name, value) for name, value in self.headers),
        )

    def __len__(self) -> int:
        return len(self.content)


@dataclass
class HttpRequest:
    method: str
    url: URL
    headers: CIMultiDict[str] = field(default_factory=CIMultiDict)
    body: Optional[RequestBody] = None
    skip_auto_headers: FrozenSet[str] = frozenset()


def build_request(
    endpoint: Optional[EndpointType],
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[RequestBody] = None,
    method: str = hdrs.METH_GET,
) -> HttpRequest:
    """
    Assemble a transport-ready request.

    The default ``Accept`` header is cleared so that only the caller's headers
    decide which content types are acceptable. Body content headers are applied
    after the caller's headers.

    Args:
        endpoint: Absolute URL of the target
        headers: Caller headers; names must be unique ignoring case
        body: Optional payload, attached unchanged
        method: HTTP method

    Returns:
        HttpRequest: The assembled request

    Raises:
        ValueError: If the endpoint is missing or relative, or a header name
            is repeated
    """
    url = ensure_absolute(endpoint)

    request_headers: CIMultiDict[str] = CIMultiDict()
    for name, value in (headers or {}).items():
        if name in request_headers:
            raise ValueError(f"duplicate header: {name}")
        request_headers.add(name, value)

    if body is not None:
        for name, value in body.headers:
            request_headers[name] = value

    return HttpRequest(
        method=method.upper(),
        url=url,
        headers=request_headers,
        body=body,
        skip_auto_headers=frozenset({hdrs.ACCEPT}),
    )
