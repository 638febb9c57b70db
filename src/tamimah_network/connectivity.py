"""Connectivity checks run before a request is dispatched."""

from __future__ import annotations

import asyncio
import logging
import socket
from contextlib import suppress

DEFAULT_PROBE_HOST = "1.1.1.1"
DEFAULT_PROBE_PORT = 53
DEFAULT_PROBE_TIMEOUT_SECONDS = 1.5

logger = logging.getLogger(__name__)


class SocketConnectivityChecker:
    """Reports connectivity by opening a TCP connection to a probe address."""

    def __init__(
        self,
        host: str = DEFAULT_PROBE_HOST,
        port: int = DEFAULT_PROBE_PORT,
        timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout_seconds = timeout_seconds

    def is_connected(self) -> bool:
        try:
            connection = socket.create_connection((self._host, self._port), timeout=self._timeout_seconds)
        except OSError as error:
            logger.debug("connectivity probe to %s:%s failed: %s", self._host, self._port, error)
            return False
        connection.close()
        return True


class AsyncSocketConnectivityChecker:
    """Async variant of :class:`SocketConnectivityChecker`."""

    def __init__(
        self,
        host: str = DEFAULT_PROBE_HOST,
        port: int = DEFAULT_PROBE_PORT,
        timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout_seconds = timeout_seconds

    async def is_connected(self) -> bool:
        try:
            _reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                timeout=self._timeout_seconds,
            )
        except (OSError, asyncio.TimeoutError) as error:
            logger.debug("connectivity probe to %s:%s failed: %s", self._host, self._port, error)
            return False

        writer.close()
        with suppress(OSError):
            await writer.wait_closed()
        return True
