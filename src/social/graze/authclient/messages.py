"""Log and error message catalogue used by the transport."""

from typing import Final

HTTP_REQUEST_UNSUCCESSFUL: Final = (
    "Response status code does not indicate success: %d (%s)."
)

RETRYING_REQUEST: Final = "Retrying one more time.."

RETRY_FAILED: Final = "Request retry failed."

REQUEST_CANCELLED: Final = "Request was cancelled by the caller."

REQUEST_TIMED_OUT: Final = "Request to the endpoint timed out."

SERVICE_UNAVAILABLE: Final = "Service is unavailable to process the request"
