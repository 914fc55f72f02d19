"""Endpoint helpers: absolute URL validation, path joining and query appending."""

from typing import Mapping, Optional, Union

from yarl import URL

EndpointType = Union[str, URL]


def ensure_absolute(endpoint: Optional[EndpointType]) -> URL:
    """
    Convert an endpoint to an absolute URL.

    Raises:
        ValueError: If the endpoint is missing or not absolute
    """
    if endpoint is None:
        raise ValueError("endpoint is required")

    url = endpoint if isinstance(endpoint, URL) else URL(endpoint)
    if not url.is_absolute() or not url.scheme:
        raise ValueError(f"endpoint must be an absolute URL: {endpoint}")
    return url


def append_query_parameters(
    endpoint: EndpointType, params: Union[str, Mapping[str, str], None]
) -> URL:
    """
    Append query parameters after any existing ones.

    ``params`` is either an already encoded ``a=b&c=d`` string, appended
    verbatim, or a mapping whose values are encoded exactly once. The existing
    query is kept byte for byte. Empty values leave the endpoint unchanged.
    """
    url = endpoint if isinstance(endpoint, URL) else URL(endpoint)
    if not params:
        return url

    if not isinstance(params, str):
        return url.extend_query(params)

    separator = "&" if url.raw_query_string else "?"
    base = str(url.with_fragment(None))
    combined = URL(f"{base}{separator}{params}", encoded=True)
    if url.raw_fragment:
        combined = URL(f"{combined}#{url.raw_fragment}", encoded=True)
    return combined


def try_combine(base: EndpointType, path: str) -> Optional[URL]:
    """
    Join ``path`` onto ``base`` with exactly one separating slash.

    Returns:
        The combined absolute URL, or None if the result is not absolute
    """
    stripped_base = str(base).rstrip("/")
    stripped_path = path.lstrip("/")
    try:
        combined = URL(f"{stripped_base}/{stripped_path}")
    except ValueError:
        return None
    if not combined.is_absolute():
        return None
    return combined
