"""
Discovery orchestration.

Decides, per request, how to produce the current player list:

1. ``force_refresh``: full mDNS sweep, persist, replace cache.
2. Recent memory cache (unless ``skip_cache``): return it, no network I/O.
3. Known devices in the store: "fast refresh", probing each known address
   directly in parallel (about one HTTP round-trip instead of the seconds an
   mDNS sweep needs to settle).
4. Nothing known: full sweep, as in 1.

Discovery degrades instead of failing. A broken sweep returns the previously
cached list (or nothing); a failing fast refresh falls back to a full sweep;
store errors are logged and skipped. Callers always get a list.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bluroom.errors import StoreError, SweepFailure
from bluroom.player.models import Player

if TYPE_CHECKING:
    from bluroom.core.known_devices import KnownDeviceStore
    from bluroom.player.cache import PlayerCache
    from bluroom.player.prober import NetworkProber

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_SECONDS = 3.0
DEFAULT_CACHE_MAX_AGE = 30.0


class DiscoveryOrchestrator:
    """
    Picks between cache, fast refresh and full sweep.

    The store and the cache are not kept transactionally in sync; the
    cache is a shorter-lived view of the same devices.
    """

    def __init__(
        self,
        prober: NetworkProber,
        store: KnownDeviceStore,
        cache: PlayerCache,
        *,
        sweep_seconds: float = DEFAULT_SWEEP_SECONDS,
        cache_max_age: float = DEFAULT_CACHE_MAX_AGE,
    ) -> None:
        self.prober = prober
        self.store = store
        self.cache = cache
        self.sweep_seconds = sweep_seconds
        self.cache_max_age = cache_max_age

    async def discover(self, force_refresh: bool = False, skip_cache: bool = False) -> list[Player]:
        """
        Return the current players.

        Args:
            force_refresh: Always run a full network sweep.
            skip_cache: Ignore the memory cache, but still prefer known
                devices over a sweep.
        """
        if force_refresh:
            logger.info("Starting full mDNS player discovery (refresh requested)...")
            return await self.full_sweep()

        if not skip_cache and self.cache.is_fresh(self.cache_max_age):
            players = self.cache.get()
            logger.info("Using %d cached players from memory", len(players))
            return players

        try:
            has_known = await self.store.has_any()
        except Exception:
            logger.exception("Known-device store unavailable, falling back to discovery")
            return await self.full_sweep()

        if not has_known:
            logger.info("No stored players in database, starting mDNS discovery...")
            return await self.full_sweep()

        try:
            return await self._fast_refresh_known_devices()
        except Exception:
            logger.exception("Error during quick query of stored players, falling back to discovery")
            return await self.full_sweep()

    async def refresh_known(self) -> list[Player]:
        """
        Re-probe the players currently in the memory cache.

        Used right after user actions that change state (e.g. regrouping),
        where a sweep would be too slow. With an empty cache this degrades to
        a full sweep rather than returning nothing.
        """
        cached = self.cache.get()
        if not cached:
            logger.warning("No known players cached, falling back to full discovery")
            return await self.full_sweep()

        targets = [(p.address, p.port) for p in cached]
        try:
            logger.info("Quick refresh of %d known players...", len(targets))
            players = await self._probe_and_record(targets)
        except Exception:
            logger.exception("Error during quick refresh, falling back to discovery")
            return await self.full_sweep()

        logger.info("Quick refresh complete. Got status from %d players.", len(players))
        return players

    async def full_sweep(self) -> list[Player]:
        """Sweep the network, persist what answered, replace the cache."""
        try:
            players = await self.prober.sweep(self.sweep_seconds)
        except SweepFailure as e:
            logger.error("Player discovery failed: %s", e)
            return self._previous_players()
        except Exception:
            logger.exception("Unexpected error during player discovery")
            return self._previous_players()

        logger.info("Discovery complete. Found %d players.", len(players))

        try:
            await self.store.upsert_from_players(players)
        except StoreError as e:
            logger.error("Could not persist discovered players: %s", e)
        except Exception:
            logger.exception("Unexpected error while persisting discovered players")

        self.cache.set(players)
        return players

    def _previous_players(self) -> list[Player]:
        players = self.cache.get()
        logger.warning("Returning %d previously known players", len(players))
        return players

    async def _fast_refresh_known_devices(self) -> list[Player]:
        logger.info("Querying stored players from database...")
        known = await self.store.get_all()
        players = await self._probe_and_record([(d.address, d.port) for d in known])
        logger.info("Quick query complete. Found %d online players.", len(players))
        return players

    async def _probe_and_record(self, targets: list[tuple[str, int]]) -> list[Player]:
        """
        Probe targets in parallel, then write online/offline flags back one
        at a time, then replace the cache with whoever answered.
        """
        results = await self.prober.probe_many(targets)

        for (address, _port), player in zip(targets, results):
            if player is not None:
                await self.store.mark_online(address)
            else:
                await self.store.mark_offline(address)

        players = [p for p in results if p is not None]
        self.cache.set(players)
        return players
