"""
Tests for bluroom.player.prober (direct probes and network sweeps).

Devices and mDNS are simulated: FakeClient answers per address, FakeBrowser
returns a fixed candidate list.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from bluroom.errors import DecodeError, SweepFailure, Unreachable
from bluroom.player.client import BluOSClient
from bluroom.player.models import Player
from bluroom.player.prober import NetworkProber
from bluroom.protocol.discovery import ServiceCandidate


class FakeClient:
    """
    Stand-in for BluOSClient.get_sync_status.

    `behaviour` maps address -> Player, an exception instance to raise, or
    "hang" to never answer.
    """

    def __init__(self, behaviour: dict[str, object]) -> None:
        self.behaviour = behaviour
        self.calls: list[tuple[str, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_sync_status(self, address: str, port: int = 11000, timeout: float | None = None) -> Player:
        self.calls.append((address, port))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            outcome = self.behaviour.get(address)
            if outcome == "hang":
                await asyncio.sleep(3600)
            if isinstance(outcome, Exception):
                raise outcome
            if outcome is None:
                raise Unreachable(address, port, "no route")
            return outcome  # type: ignore[return-value]
        finally:
            self.in_flight -= 1


class FakeBrowser:
    def __init__(self, candidates: list[ServiceCandidate] | None = None, error: Exception | None = None) -> None:
        self.candidates = candidates or []
        self.error = error
        self.durations: list[float] = []

    async def browse(self, duration: float) -> list[ServiceCandidate]:
        self.durations.append(duration)
        if self.error is not None:
            raise self.error
        return list(self.candidates)


def player(address: str, name: str) -> Player:
    return Player(id=f"mac-{address}", address=address, name=name)


# =============================================================================
# probe()
# =============================================================================


class TestProbe:
    """Tests for single-device probes."""

    async def test_probe_returns_player(self) -> None:
        kitchen = player("10.0.0.2", "Kitchen")
        prober = NetworkProber(FakeClient({"10.0.0.2": kitchen}), FakeBrowser())
        assert await prober.probe("10.0.0.2") == kitchen

    async def test_probe_timeout_returns_none(self) -> None:
        prober = NetworkProber(FakeClient({"10.0.0.2": "hang"}), FakeBrowser(), probe_timeout=0.05)
        assert await prober.probe("10.0.0.2") is None

    async def test_probe_unreachable_returns_none(self) -> None:
        prober = NetworkProber(FakeClient({}), FakeBrowser())
        assert await prober.probe("10.0.0.9") is None

    async def test_probe_decode_error_returns_none(self) -> None:
        client = FakeClient({"10.0.0.2": DecodeError("bad root")})
        prober = NetworkProber(client, FakeBrowser())
        assert await prober.probe("10.0.0.2") is None

    async def test_unexpected_device_error_returns_none(self) -> None:
        client = FakeClient({"10.0.0.2": RuntimeError("firmware sent something odd")})
        prober = NetworkProber(client, FakeBrowser())
        assert await prober.probe("10.0.0.2") is None

    def test_rejects_zero_concurrency(self) -> None:
        with pytest.raises(ValueError):
            NetworkProber(FakeClient({}), FakeBrowser(), max_concurrency=0)


# =============================================================================
# probe_many()
# =============================================================================


class TestProbeMany:
    """Tests for parallel probes."""

    async def test_results_keep_target_order(self) -> None:
        a, c = player("10.0.0.1", "A"), player("10.0.0.3", "C")
        client = FakeClient({"10.0.0.1": a, "10.0.0.3": c})
        prober = NetworkProber(client, FakeBrowser())

        results = await prober.probe_many([("10.0.0.1", 11000), ("10.0.0.2", 11000), ("10.0.0.3", 11010)])

        assert results == [a, None, c]
        assert ("10.0.0.3", 11010) in client.calls

    async def test_concurrency_is_bounded(self) -> None:
        behaviour = {f"10.0.0.{i}": player(f"10.0.0.{i}", str(i)) for i in range(10)}
        client = FakeClient(behaviour)
        prober = NetworkProber(client, FakeBrowser(), max_concurrency=3)

        await prober.probe_many([(address, 11000) for address in behaviour])

        assert len(client.calls) == 10
        assert client.max_in_flight <= 3

    async def test_empty_targets(self) -> None:
        prober = NetworkProber(FakeClient({}), FakeBrowser())
        assert await prober.probe_many([]) == []


# =============================================================================
# sweep()
# =============================================================================


class TestSweep:
    """Tests for mDNS sweeps."""

    async def test_sweep_probes_candidates_and_sorts_by_name(self) -> None:
        zed, alpha = player("10.0.0.1", "Zed"), player("10.0.0.2", "Alpha")
        browser = FakeBrowser(
            [
                ServiceCandidate("10.0.0.1", 11000, "Zed"),
                ServiceCandidate("10.0.0.2", 11000, "Alpha"),
                ServiceCandidate("10.0.0.3", 11000, "Gone"),
            ]
        )
        prober = NetworkProber(FakeClient({"10.0.0.1": zed, "10.0.0.2": alpha}), browser)

        players = await prober.sweep(2.5)

        assert [p.name for p in players] == ["Alpha", "Zed"]
        assert browser.durations == [2.5]

    async def test_sweep_timeout_omits_device(self) -> None:
        ok = player("10.0.0.1", "Kitchen")
        browser = FakeBrowser(
            [ServiceCandidate("10.0.0.1", 11000), ServiceCandidate("10.0.0.2", 11000)]
        )
        client = FakeClient({"10.0.0.1": ok, "10.0.0.2": "hang"})
        prober = NetworkProber(client, browser, probe_timeout=0.05)

        assert await prober.sweep(0.0) == [ok]

    async def test_sweep_keeps_devices_past_an_unexpected_error(self) -> None:
        kitchen, office = player("10.0.0.1", "Kitchen"), player("10.0.0.3", "Office")
        browser = FakeBrowser([ServiceCandidate(f"10.0.0.{i}", 11000) for i in (1, 2, 3)])
        client = FakeClient({"10.0.0.1": kitchen, "10.0.0.2": OverflowError("bad number"), "10.0.0.3": office})
        prober = NetworkProber(client, browser)

        assert await prober.sweep(0.0) == [kitchen, office]

    async def test_sweep_with_non_finite_volume_over_http(self) -> None:
        payloads = {
            "10.0.0.1": '<SyncStatus name="Kitchen" mac="AA" volume="20"/>',
            "10.0.0.2": '<SyncStatus name="Weird" mac="BB" volume="inf"/>',
        }

        def device(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=payloads[request.url.host])

        http = httpx.AsyncClient(transport=httpx.MockTransport(device))
        browser = FakeBrowser([ServiceCandidate(address, 11000) for address in payloads])
        prober = NetworkProber(BluOSClient(http_client=http, timeout=1.0), browser)
        try:
            players = await prober.sweep(0.0)
        finally:
            await http.aclose()

        assert [(p.name, p.volume) for p in players] == [("Kitchen", 20), ("Weird", 0)]

    async def test_sweep_with_no_candidates(self) -> None:
        client = FakeClient({})
        prober = NetworkProber(client, FakeBrowser([]))

        assert await prober.sweep(0.0) == []
        assert client.calls == []

    async def test_sweep_failure_propagates(self) -> None:
        prober = NetworkProber(FakeClient({}), FakeBrowser(error=SweepFailure("no multicast")))
        with pytest.raises(SweepFailure):
            await prober.sweep(0.0)
