"""
HTTP client for the BluOS control protocol.

Every BluOS command is a plain GET against ``http://{address}:{port}/...``.
Status endpoints return XML, which is handed to `bluroom.protocol.bluos`
for decoding; control endpoints are judged by their HTTP status only.

Error model:
- Status reads raise `Unreachable` (timeout, connection error, non-2xx) or
  `DecodeError` (bad payload). Callers decide what "offline" means.
- Control commands never raise for device failures; they return False so the
  caller can report a per-action failure.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

import httpx

from bluroom.errors import Unreachable
from bluroom.player.models import DEFAULT_DEVICE_PORT, PlaybackStatus, Player
from bluroom.protocol.bluos import decode_playback_status, decode_sync_status

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class ControlAction(Enum):
    """Transport commands, mapped to their BluOS endpoint."""

    PLAY = "/Play"
    PAUSE = "/Pause"
    STOP = "/Stop"
    NEXT = "/Skip"
    PREVIOUS = "/Back"

    @property
    def path(self) -> str:
        return self.value


class BluOSClient:
    """
    Thin async wrapper around the BluOS HTTP API.

    The client owns an `httpx.AsyncClient` unless one is injected (tests pass
    one built on `httpx.MockTransport`). Call `close()` on shutdown.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.timeout = timeout
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    @staticmethod
    def _url(address: str, port: int, path: str) -> str:
        return f"http://{address}:{port}{path}"

    async def _get_text(
        self,
        address: str,
        port: int,
        path: str,
        timeout: float | None = None,
    ) -> str:
        url = self._url(address, port, path)
        logger.debug("GET %s", url)
        try:
            response = await self._http.get(url, timeout=timeout or self.timeout)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise Unreachable(address, port, "timeout") from e
        except httpx.HTTPStatusError as e:
            raise Unreachable(address, port, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise Unreachable(address, port, str(e) or type(e).__name__) from e
        return response.text

    async def _command(
        self,
        address: str,
        port: int,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> bool:
        url = self._url(address, port, path)
        try:
            response = await self._http.get(url, params=params)
        except httpx.HTTPError as e:
            logger.error("Command %s failed on %s:%d: %s", path, address, port, e)
            return False

        if response.is_success:
            return True

        logger.warning(
            "Command %s rejected by %s:%d (HTTP %d)",
            path,
            address,
            port,
            response.status_code,
        )
        return False

    # =========================================================================
    # Status
    # =========================================================================

    async def get_sync_status(
        self,
        address: str,
        port: int = DEFAULT_DEVICE_PORT,
        timeout: float | None = None,
    ) -> Player:
        """
        Fetch and decode ``/SyncStatus``.

        Raises:
            Unreachable: The device did not answer successfully.
            DecodeError: The device answered with an invalid payload.
        """
        body = await self._get_text(address, port, "/SyncStatus", timeout)
        return decode_sync_status(body, address, port)

    async def get_playback_status(
        self,
        address: str,
        port: int = DEFAULT_DEVICE_PORT,
    ) -> PlaybackStatus:
        """
        Fetch and decode ``/Status``.

        Raises:
            Unreachable: The device did not answer successfully.
            DecodeError: The device answered with an invalid payload.
        """
        body = await self._get_text(address, port, "/Status")
        return decode_playback_status(body, address, port)

    # =========================================================================
    # Playback control
    # =========================================================================

    async def control(self, address: str, port: int, action: ControlAction) -> bool:
        logger.info("%s on %s:%d", action.name.lower(), address, port)
        return await self._command(address, port, action.path)

    async def set_volume(self, address: str, port: int, level: int) -> bool:
        level = max(0, min(100, level))
        logger.info("Setting volume to %d on %s:%d", level, address, port)
        return await self._command(address, port, "/Volume", {"level": level})

    async def set_mute(self, address: str, port: int, muted: bool) -> bool:
        return await self._command(address, port, "/Volume", {"mute": 1 if muted else 0})

    async def seek(self, address: str, port: int, seconds: int) -> bool:
        return await self._command(address, port, "/Seek", {"time": max(0, seconds)})

    # =========================================================================
    # Grouping
    # =========================================================================

    async def add_slave(
        self,
        master_address: str,
        master_port: int,
        slave_address: str,
        slave_port: int = DEFAULT_DEVICE_PORT,
    ) -> bool:
        """Ask a master to take `slave_address` into its group."""
        logger.info("Adding slave %s to master %s:%d", slave_address, master_address, master_port)
        return await self._command(
            master_address,
            master_port,
            "/AddSlave",
            {"slave": slave_address, "port": slave_port},
        )

    async def remove_slave(
        self,
        master_address: str,
        master_port: int,
        slave_address: str,
        slave_port: int = DEFAULT_DEVICE_PORT,
    ) -> bool:
        """Ask a master to release `slave_address` from its group."""
        logger.info("Removing slave %s from master %s:%d", slave_address, master_address, master_port)
        return await self._command(
            master_address,
            master_port,
            "/RemoveSlave",
            {"slave": slave_address, "port": slave_port},
        )

    async def leave_group(self, address: str, port: int) -> bool:
        """Make a slave leave whatever group it is in."""
        logger.info("Player %s:%d leaving group", address, port)
        return await self._command(address, port, "/Leave")
