"""
Player service: the boundary consumed by the web layer.

Consolidates discovery, grouping and playback control. Discovery calls never
raise (see `DiscoveryOrchestrator`); control calls return False when the
device refused or did not answer, so failures are reported per action.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from bluroom.core.topology import organize_into_groups, selector_items
from bluroom.errors import DecodeError, Unreachable
from bluroom.player.models import DEFAULT_DEVICE_PORT

if TYPE_CHECKING:
    from bluroom.core.db.models import KnownDevice
    from bluroom.core.discovery import DiscoveryOrchestrator
    from bluroom.core.known_devices import KnownDeviceStore
    from bluroom.player.client import BluOSClient, ControlAction
    from bluroom.player.models import Group, PlaybackStatus, Player, SelectorItem

logger = logging.getLogger(__name__)


class PlayerService:
    """High-level facade over discovery, topology and device control."""

    def __init__(
        self,
        orchestrator: DiscoveryOrchestrator,
        client: BluOSClient,
        store: KnownDeviceStore,
    ) -> None:
        self.orchestrator = orchestrator
        self.client = client
        self.store = store

    # =========================================================================
    # Discovery
    # =========================================================================

    async def list_players(self, force_refresh: bool = False, skip_cache: bool = False) -> list[Player]:
        """Flat, ungrouped player list."""
        return await self.orchestrator.discover(force_refresh=force_refresh, skip_cache=skip_cache)

    async def discover(self, force_refresh: bool = False, skip_cache: bool = False) -> list[Group]:
        players = await self.list_players(force_refresh=force_refresh, skip_cache=skip_cache)
        return organize_into_groups(players)

    async def refresh_known(self) -> list[Group]:
        players = await self.orchestrator.refresh_known()
        return organize_into_groups(players)

    async def selector(self, force_refresh: bool = False) -> list[SelectorItem]:
        """Rooms formatted for the player picker."""
        return selector_items(await self.discover(force_refresh=force_refresh))

    async def sync_status(self, address: str, port: int = DEFAULT_DEVICE_PORT) -> Player | None:
        """Probe one device directly, bypassing cache and store."""
        return await self.orchestrator.prober.probe(address, port)

    async def playback_status(self, address: str, port: int = DEFAULT_DEVICE_PORT) -> PlaybackStatus | None:
        try:
            return await self.client.get_playback_status(address, port)
        except (Unreachable, DecodeError) as e:
            logger.warning("Failed to get playback status from %s:%d: %s", address, port, e)
            return None

    # =========================================================================
    # Playback control
    # =========================================================================

    async def control(self, address: str, action: ControlAction, port: int = DEFAULT_DEVICE_PORT) -> bool:
        return await self.client.control(address, port, action)

    async def set_volume(self, address: str, level: int, port: int = DEFAULT_DEVICE_PORT) -> bool:
        return await self.client.set_volume(address, port, level)

    async def set_mute(self, address: str, muted: bool, port: int = DEFAULT_DEVICE_PORT) -> bool:
        return await self.client.set_mute(address, port, muted)

    async def seek(self, address: str, seconds: int, port: int = DEFAULT_DEVICE_PORT) -> bool:
        return await self.client.seek(address, port, seconds)

    # =========================================================================
    # Grouping
    # =========================================================================

    async def create_group(
        self,
        master_address: str,
        slave_addresses: Iterable[str],
        port: int = DEFAULT_DEVICE_PORT,
    ) -> bool:
        """Add every slave to the master; stops at the first refusal."""
        success = True
        for slave_address in slave_addresses:
            if not await self.client.add_slave(master_address, port, slave_address):
                success = False
                break
        await self._after_group_change()
        return success

    async def add_to_group(self, master_address: str, slave_address: str, port: int = DEFAULT_DEVICE_PORT) -> bool:
        success = await self.client.add_slave(master_address, port, slave_address)
        if success:
            await self._after_group_change()
        return success

    async def remove_from_group(
        self,
        master_address: str,
        slave_address: str,
        port: int = DEFAULT_DEVICE_PORT,
    ) -> bool:
        success = await self.client.remove_slave(master_address, port, slave_address)
        if success:
            await self._after_group_change()
        return success

    async def leave_group(self, address: str, port: int = DEFAULT_DEVICE_PORT) -> bool:
        success = await self.client.leave_group(address, port)
        if success:
            await self._after_group_change()
        return success

    async def _after_group_change(self) -> None:
        # Topology just changed on the devices; re-read it so the cache agrees.
        await self.orchestrator.refresh_known()

    # =========================================================================
    # Known devices (administration)
    # =========================================================================

    async def known_devices(self) -> list[KnownDevice]:
        return await self.store.get_all()

    async def forget_device(self, address: str) -> bool:
        return await self.store.remove(address)
