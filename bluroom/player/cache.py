"""
Short-lived in-memory cache of the last discovery result.

Absorbs bursts of UI requests so that page loads within a few seconds of each
other do not each hit the network. The list and its timestamp are guarded by
one lock and always replaced together; there are no partial updates.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterable

from bluroom.player.models import Player

logger = logging.getLogger(__name__)


class PlayerCache:
    """
    Wholesale-replaced snapshot of players plus the time it was taken.

    A plain `threading.Lock` is used (no awaits happen while it is held), so
    the cache is safe from both coroutines and worker threads.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Args:
            clock: Monotonic time source in seconds (injectable for tests).
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._players: tuple[Player, ...] = ()
        self._stored_at: float | None = None

    def get(self) -> list[Player]:
        """Return a copy of the cached players (empty if nothing cached)."""
        with self._lock:
            return list(self._players)

    def set(self, players: Iterable[Player]) -> None:
        """Replace the cached players and stamp the current time."""
        snapshot = tuple(players)
        with self._lock:
            self._players = snapshot
            self._stored_at = self._clock()
        logger.debug("Player cache replaced (%d players)", len(snapshot))

    def is_fresh(self, max_age: float) -> bool:
        """True iff the cache is non-empty and younger than `max_age` seconds."""
        with self._lock:
            if not self._players or self._stored_at is None:
                return False
            return self._clock() - self._stored_at < max_age

    def age(self) -> float | None:
        """Seconds since the last `set()`, or None if never set."""
        with self._lock:
            if self._stored_at is None:
                return None
            return self._clock() - self._stored_at

    def clear(self) -> None:
        with self._lock:
            self._players = ()
            self._stored_at = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._players)

    def __bool__(self) -> bool:
        """A cache instance is always truthy, even when empty."""
        return True
