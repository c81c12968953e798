"""
mDNS discovery of BluOS devices.

BluOS players advertise themselves as ``_musc._tcp.local.``. A browse is a
fixed-length listening window: we start a service browser, wait for the scan
duration (the multicast "settle time"), then resolve every announced service
name to an address and port.

The browser only yields candidates. Whether a candidate is really a player is
decided later, by fetching its status (see `bluroom.player.prober`).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from zeroconf import IPVersion, ServiceStateChange, Zeroconf
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from bluroom.errors import SweepFailure
from bluroom.player.models import DEFAULT_DEVICE_PORT

logger = logging.getLogger(__name__)

BLUOS_SERVICE_TYPE = "_musc._tcp.local."

# How long to wait for a single service name to resolve after the scan window
RESOLVE_TIMEOUT_MS = 3000


@dataclass(frozen=True, slots=True)
class ServiceCandidate:
    """An announced service that may be a player."""

    address: str
    port: int
    name: str = ""


class MdnsBrowser:
    """
    Browses the local network for one mDNS service type.

    Example:
        browser = MdnsBrowser()
        candidates = await browser.browse(duration=3.0)
    """

    def __init__(
        self,
        service_type: str = BLUOS_SERVICE_TYPE,
        default_port: int = DEFAULT_DEVICE_PORT,
    ) -> None:
        self.service_type = service_type
        self.default_port = default_port

    async def browse(self, duration: float) -> list[ServiceCandidate]:
        """
        Listen for announcements for `duration` seconds and resolve them.

        Returns:
            Candidates, de-duplicated by (address, port). May be empty.

        Raises:
            SweepFailure: The multicast socket could not be opened or the
                browser failed.
        """
        try:
            aiozc = AsyncZeroconf(ip_version=IPVersion.V4Only)
        except OSError as e:
            raise SweepFailure(f"Could not open mDNS socket: {e}") from e

        names: set[str] = set()

        def on_service_state_change(
            zeroconf: Zeroconf,
            service_type: str,
            name: str,
            state_change: ServiceStateChange,
        ) -> None:
            if state_change in (ServiceStateChange.Added, ServiceStateChange.Updated):
                logger.debug("Found host during scan: %s", name)
                names.add(name)

        browser: AsyncServiceBrowser | None = None
        try:
            logger.info("Starting mDNS browse for %s (%.1fs)", self.service_type, duration)
            browser = AsyncServiceBrowser(
                aiozc.zeroconf,
                [self.service_type],
                handlers=[on_service_state_change],
            )
            await asyncio.sleep(duration)

            resolved = await asyncio.gather(
                *(self._resolve(aiozc, name) for name in sorted(names))
            )
        except OSError as e:
            raise SweepFailure(f"mDNS browse failed: {e}") from e
        finally:
            if browser is not None:
                await browser.async_cancel()
            await aiozc.async_close()

        candidates: list[ServiceCandidate] = []
        seen: set[tuple[str, int]] = set()
        for candidate in resolved:
            if candidate is None:
                continue
            key = (candidate.address, candidate.port)
            if key in seen:
                continue
            seen.add(key)
            candidates.append(candidate)

        logger.info("Found %d devices via mDNS", len(candidates))
        return candidates

    async def _resolve(self, aiozc: AsyncZeroconf, name: str) -> ServiceCandidate | None:
        info = AsyncServiceInfo(self.service_type, name)
        if not await info.async_request(aiozc.zeroconf, RESOLVE_TIMEOUT_MS):
            logger.debug("Could not resolve service: %s", name)
            return None

        addresses = info.parsed_addresses(IPVersion.V4Only)
        if not addresses:
            logger.debug("No IPv4 address for service: %s", name)
            return None

        port = info.port or self.default_port
        return ServiceCandidate(address=addresses[0], port=port, name=name)
