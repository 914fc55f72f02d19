"""
Request context carried through a single transport call.

A ``RequestContext`` is created by the caller for each logical request and
passed by reference through the whole call chain. The transport only reads it:
diagnostics are written through its logger, which injects a whitelisted set of
correlation fields into every record:

- ``correlation_id`` - ULID generated per logical request unless supplied
- ``client_name`` / ``client_version`` - identification of the calling app

Secrets must never be attached to the context.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping, Optional

from ulid import ULID


class _RequestLoggerAdapter(logging.LoggerAdapter):
    """Inject whitelisted request context into log records."""

    extra_keys = ("correlation_id", "client_name", "client_version")

    def __init__(self, logger: logging.Logger, extra: Optional[Mapping[str, Any]] = None):
        extra_clean: MutableMapping[str, Any] = {}
        for k in self.extra_keys:
            if extra and extra.get(k) is not None:
                extra_clean[k] = extra[k]
        super().__init__(logger, extra_clean)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]):
        if kwargs.get("extra") is None:
            kwargs["extra"] = {}
        # call-site extras win
        for k, v in self.extra.items():
            kwargs["extra"].setdefault(k, v)
        return msg, kwargs


def get_request_logger(
    *,
    base_logger_name: str = "social.graze.authclient.request",
    correlation_id: Optional[str] = None,
    client_name: Optional[str] = None,
    client_version: Optional[str] = None,
) -> logging.LoggerAdapter:
    """Return a LoggerAdapter pre-filled with request context."""
    return _RequestLoggerAdapter(
        logging.getLogger(base_logger_name),
        {
            "correlation_id": correlation_id,
            "client_name": client_name,
            "client_version": client_version,
        },
    )


@dataclass(frozen=True)
class RequestContext:
    """Per-call carrier of correlation metadata and the diagnostics sink."""

    correlation_id: str = field(default_factory=lambda: str(ULID()))
    client_name: Optional[str] = None
    client_version: Optional[str] = None
    logger: logging.LoggerAdapter = field(default=None, repr=False, compare=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.logger is None:
            object.__setattr__(
                self,
                "logger",
                get_request_logger(
                    correlation_id=self.correlation_id,
                    client_name=self.client_name,
                    client_version=self.client_version,
                ),
            )

    def info(self, message: str, *args: Any) -> None:
        self._log(logging.INFO, message, *args)

    def error(self, message: str, *args: Any) -> None:
        self._log(logging.ERROR, message, *args)

    def _log(self, level: int, message: str, *args: Any) -> None:
        # diagnostics must never fail the call
        try:
            self.logger.log(level, message, *args)
        except Exception:  # pragma: no cover
            logging.getLogger(__name__).debug(
                "Failed to emit request diagnostic", exc_info=True
            )
