"""
Network prober: turns addresses into `Player` snapshots.

Two entry points:
- `probe()` asks one address for its sync status.
- `sweep()` runs an mDNS browse and probes every candidate it found.

Both are failure-tolerant per device. An unreachable or misbehaving device is
logged and omitted; it never fails the sweep. Fan-outs are bounded by a
semaphore and every probe has its own timeout, so one slow device cannot delay
the others beyond that timeout.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Iterable, Protocol

from bluroom.errors import DecodeError, Unreachable
from bluroom.player.models import DEFAULT_DEVICE_PORT, Player

if TYPE_CHECKING:
    from bluroom.player.client import BluOSClient
    from bluroom.protocol.discovery import ServiceCandidate

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 5.0
DEFAULT_MAX_CONCURRENCY = 16


class CandidateBrowser(Protocol):
    """Anything that can list candidate devices (see `MdnsBrowser`)."""

    async def browse(self, duration: float) -> list[ServiceCandidate]: ...


class NetworkProber:
    """Probes devices directly and sweeps the network for new ones."""

    def __init__(
        self,
        client: BluOSClient,
        browser: CandidateBrowser,
        *,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.client = client
        self.browser = browser
        self.probe_timeout = probe_timeout
        self.max_concurrency = max_concurrency

    async def probe(
        self,
        address: str,
        port: int = DEFAULT_DEVICE_PORT,
        timeout: float | None = None,
    ) -> Player | None:
        """
        Fetch one device's sync status.

        Returns:
            The decoded player, or None when the probe failed for any reason.
            One device never fails a fan-out.
        """
        timeout = timeout if timeout is not None else self.probe_timeout
        try:
            return await asyncio.wait_for(
                self.client.get_sync_status(address, port, timeout=timeout),
                timeout=timeout,
            )
        except (TimeoutError, asyncio.TimeoutError):
            logger.warning("Probe of %s:%d timed out after %.1fs", address, port, timeout)
        except Unreachable as e:
            logger.warning("Failed to get status from %s", e)
        except DecodeError as e:
            logger.warning("Dropping %s:%d this cycle, bad payload: %s", address, port, e)
        except Exception:
            logger.exception("Unexpected error probing %s:%d, dropping it this cycle", address, port)
        return None

    async def probe_many(self, targets: Iterable[tuple[str, int]]) -> list[Player | None]:
        """
        Probe several addresses concurrently.

        Returns:
            One result per target, in target order (None where the probe failed).
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(address: str, port: int) -> Player | None:
            async with semaphore:
                return await self.probe(address, port)

        return list(await asyncio.gather(*(_bounded(a, p) for a, p in targets)))

    async def sweep(self, duration: float) -> list[Player]:
        """
        Discover candidates via mDNS and probe each of them.

        Returns:
            Players that answered, ordered by name. Empty is a valid outcome.

        Raises:
            SweepFailure: The browse itself could not run.
        """
        candidates = await self.browser.browse(duration)
        results = await self.probe_many((c.address, c.port) for c in candidates)

        players: list[Player] = []
        for player in results:
            if player is not None:
                logger.info("Discovered player: %s at %s", player.name, player.address)
                players.append(player)

        players.sort(key=lambda p: p.name)
        return players
