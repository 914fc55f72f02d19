"""
Classified errors raised by the auth client.

Only lightweight, data-carrying exceptions live here so that callers can turn
them into user facing messages or decide whether to restart a flow. Errors
are split in two families:

- ``AuthClientError``: failures local to the library or the device, such as a
  request that timed out or could not reach the service.
- ``AuthServiceError``: failures reported by the security token service,
  carrying the last response for diagnostic inspection.

The transport never instantiates these classes directly, it goes through
``get_client_error`` and ``get_service_error`` so that error metadata is
attached consistently.
"""

from typing import TYPE_CHECKING, Any, Dict, Final, Optional

if TYPE_CHECKING:
    from social.graze.authclient.http.response import HttpResponse


# Error codes
REQUEST_TIMEOUT: Final = "request_timeout"
"""The request did not complete before it was cancelled or timed out."""

SERVICE_NOT_AVAILABLE: Final = "service_not_available"
"""The service answered with a 5xx status on every attempt."""


class AuthError(Exception):
    """Base class for every classified error raised by the auth client."""

    def __init__(self, error_code: str, message: Optional[str] = None) -> None:
        super().__init__(message or error_code)
        self.error_code: str = error_code
        self.message: str = message or error_code

    def to_payload(self) -> Dict[str, Any]:
        """Return a JSON-serialisable payload without secrets."""
        return {
            "error": self.error_code,
            "message": self.message,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(error_code={self.error_code!r}, message={self.message!r})"


class AuthClientError(AuthError):
    """Raised for errors that are local to the library or the device."""


class AuthServiceError(AuthError):
    """Raised when the security token service could not fulfil a request.

    The last response received from the service is kept on the error so that
    callers can inspect status, headers and body.
    """

    def __init__(
        self,
        error_code: str,
        message: Optional[str] = None,
        response: Optional["HttpResponse"] = None,
    ) -> None:
        super().__init__(error_code, message)
        self.response: Optional["HttpResponse"] = response

    @property
    def status_code(self) -> Optional[int]:
        if self.response is None:
            return None
        return self.response.status

    @property
    def response_body(self) -> Optional[str]:
        if self.response is None:
            return None
        return self.response.body

    @property
    def headers(self):
        if self.response is None:
            return None
        return self.response.headers

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        return payload


def get_client_error(
    error_code: str,
    message: str,
    cause: Optional[BaseException] = None,
) -> AuthClientError:
    """
    Build a classified client error.

    Args:
        error_code: One of the error code constants of this module
        message: Human readable description
        cause: Optional inner exception, attached as ``__cause__``

    Returns:
        AuthClientError: The error, ready to be raised
    """
    error = AuthClientError(error_code, message)
    if cause is not None:
        error.__cause__ = cause
    return error


def get_service_error(
    error_code: str,
    message: str,
    response: Optional["HttpResponse"] = None,
    cause: Optional[BaseException] = None,
) -> AuthServiceError:
    """
    Build a classified service error.

    Args:
        error_code: One of the error code constants of this module
        message: Human readable description
        response: The last response received from the service, if any
        cause: Optional inner exception, attached as ``__cause__``

    Returns:
        AuthServiceError: The error, ready to be raised
    """
    error = AuthServiceError(error_code, message, response=response)
    if cause is not None:
        error.__cause__ = cause
    return error
