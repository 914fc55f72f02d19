"""
Metrics Abstraction Layer for the Auth Client

This module provides a vendor-agnostic metrics interface so that the transport
can report request timings, counts and retries without depending on a specific
backend.

Key Components:
- MetricsClient: Abstract interface for all metrics operations
- TelegrafCompatibilityClient: Wrapper for aio_statsd's TelegrafStatsdClient
- NoOpMetricsClient: No-operation client used when metrics are disabled
- create_metrics_client: Factory selecting a backend from Settings

Metric names used by the transport:
- ``authclient.client.request.time``: duration of one attempt in seconds
- ``authclient.client.request.count``: one per attempt
- ``authclient.client.request.retry``: one per retry scheduled by HttpManager
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from aio_statsd import TelegrafStatsdClient

from social.graze.authclient.config import Settings

logger = logging.getLogger(__name__)


class MetricsClient(ABC):
    """
    Abstract metrics client interface.

    Tag handling follows StatsD-style tag dictionaries. Implementations must
    never raise from the recording methods: metrics are advisory and may not
    fail a request.
    """

    async def connect(self) -> None:
        """Open any network resources needed by the backend."""

    @abstractmethod
    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Increment a counter metric by the specified value.

        Args:
            name: Metric name (e.g., 'authclient.client.request.count')
            value: Amount to increment by (default: 1)
            tag_dict: Optional tags for metric dimensions
        """

    @abstractmethod
    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Record a duration measurement.

        Args:
            name: Metric name (e.g., 'authclient.client.request.time')
            value: Duration in seconds
            tag_dict: Optional tags for metric dimensions
        """

    @abstractmethod
    async def close(self) -> None:
        """Flush pending metrics and release network resources."""


class TelegrafCompatibilityClient(MetricsClient):
    """
    MetricsClient backed by a TelegrafStatsdClient.

    Sending failures are logged and dropped.
    """

    def __init__(self, telegraf_client: TelegrafStatsdClient):
        self.client = telegraf_client

    async def connect(self) -> None:
        await self.client.connect()

    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        try:
            self.client.increment(name, value, tag_dict=tag_dict or {})
        except Exception as e:
            logger.warning("Error sending metric %s: %s", name, e)

    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        try:
            self.client.timer(name, value, tag_dict=tag_dict or {})
        except Exception as e:
            logger.warning("Error sending metric %s: %s", name, e)

    async def close(self) -> None:
        try:
            await self.client.close()
        except Exception as e:
            logger.warning("Error closing Telegraf client: %s", e)


class NoOpMetricsClient(MetricsClient):
    """No-operation metrics client for disabled metrics collection."""

    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass

    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass

    async def close(self) -> None:
        pass


def create_metrics_client(settings: Settings) -> MetricsClient:
    """
    Create the metrics client selected by ``settings.metrics_backend``.

    The returned client is not connected yet; call ``connect()`` before use.

    Args:
        settings: Client settings

    Returns:
        MetricsClient: Configured metrics client instance

    Raises:
        ValueError: If the backend type is not supported
    """
    backend = settings.metrics_backend.lower()

    if backend == "telegraf":
        logger.debug(
            "Creating Telegraf metrics client for %s:%s",
            settings.statsd_host,
            settings.statsd_port,
        )
        return TelegrafCompatibilityClient(
            TelegrafStatsdClient(
                host=settings.statsd_host,
                port=settings.statsd_port,
                debug=settings.debug,
            )
        )

    if backend == "noop":
        logger.info("Metrics collection disabled (no-op client)")
        return NoOpMetricsClient()

    raise ValueError(
        f"Invalid metrics backend: {backend}. Supported backends: 'telegraf', 'noop'"
    )
