"""
Tests for bluroom.player.cache (short-lived player cache).
"""

from __future__ import annotations

import threading

import pytest

from bluroom.player.cache import PlayerCache
from bluroom.player.models import Player


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> PlayerCache:
    return PlayerCache(clock=clock)


def players(*names: str) -> list[Player]:
    return [Player(id=name, address=f"10.0.0.{i}", name=name) for i, name in enumerate(names, start=1)]


class TestFreshness:
    """Tests for the freshness window."""

    def test_fresh_just_inside_window(self, cache: PlayerCache, clock: FakeClock) -> None:
        cache.set(players("Kitchen"))
        clock.now += 29.9
        assert cache.is_fresh(30.0) is True

    def test_stale_just_outside_window(self, cache: PlayerCache, clock: FakeClock) -> None:
        cache.set(players("Kitchen"))
        clock.now += 30.1
        assert cache.is_fresh(30.0) is False

    def test_stale_exactly_at_window(self, cache: PlayerCache, clock: FakeClock) -> None:
        cache.set(players("Kitchen"))
        clock.now += 30.0
        assert cache.is_fresh(30.0) is False

    def test_empty_cache_is_never_fresh(self, cache: PlayerCache) -> None:
        assert cache.is_fresh(30.0) is False
        cache.set([])
        assert cache.is_fresh(30.0) is False

    def test_age(self, cache: PlayerCache, clock: FakeClock) -> None:
        assert cache.age() is None
        cache.set(players("Kitchen"))
        clock.now += 5.0
        assert cache.age() == pytest.approx(5.0)


class TestContents:
    """Tests for get/set/clear."""

    def test_set_replaces_wholesale(self, cache: PlayerCache) -> None:
        cache.set(players("A", "B"))
        cache.set(players("C"))
        assert [p.name for p in cache.get()] == ["C"]
        assert len(cache) == 1

    def test_get_returns_copy(self, cache: PlayerCache) -> None:
        cache.set(players("A"))
        snapshot = cache.get()
        snapshot.clear()
        assert len(cache.get()) == 1

    def test_set_accepts_generator(self, cache: PlayerCache) -> None:
        cache.set(p for p in players("A", "B"))
        assert len(cache) == 2

    def test_clear(self, cache: PlayerCache) -> None:
        cache.set(players("A"))
        cache.clear()
        assert cache.get() == []
        assert cache.age() is None

    def test_empty_cache_is_truthy(self, cache: PlayerCache) -> None:
        assert len(cache) == 0
        assert bool(cache) is True

    def test_concurrent_writers_never_mix(self, cache: PlayerCache) -> None:
        batches = [players(*(f"{n}-{i}" for i in range(5))) for n in range(8)]

        def writer(batch: list[Player]) -> None:
            for _ in range(200):
                cache.set(batch)

        threads = [threading.Thread(target=writer, args=(b,)) for b in batches]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        result = cache.get()
        prefixes = {p.name.split("-")[0] for p in result}
        assert len(result) == 5
        assert len(prefixes) == 1
