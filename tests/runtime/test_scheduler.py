"""Tests for the virtual-clock and asyncio schedulers."""

import asyncio

import pytest

from timerlink.liveness.prober import ProbeState
from timerlink.link.memory import InMemoryLink
from timerlink.peers.companion import CompanionPeer
from timerlink.peers.primary import PrimaryPeer
from timerlink.runtime.scheduler import AsyncioScheduler, ManualScheduler


class TestManualScheduler:
    """ManualScheduler only moves when advanced."""

    def test_runs_in_time_then_schedule_order(self, scheduler: ManualScheduler) -> None:
        calls: list[str] = []
        scheduler.call_later(2.0, calls.append, "late")
        scheduler.call_later(1.0, calls.append, "early")
        scheduler.call_soon(calls.append, "soon-1")
        scheduler.call_soon(calls.append, "soon-2")

        executed = scheduler.advance(3.0)

        assert calls == ["soon-1", "soon-2", "early", "late"]
        assert executed == 4
        assert scheduler.now() == 3.0

    def test_nothing_runs_before_due(self, scheduler: ManualScheduler) -> None:
        calls: list[str] = []
        scheduler.call_later(5.0, calls.append, "x")

        scheduler.advance(4.9)
        assert calls == []
        scheduler.advance(0.1)
        assert calls == ["x"]

    def test_cancelled_callbacks_are_skipped(self, scheduler: ManualScheduler) -> None:
        calls: list[str] = []
        handle = scheduler.call_later(1.0, calls.append, "cancelled")
        scheduler.call_later(1.0, calls.append, "kept")
        handle.cancel()

        assert handle.cancelled()
        assert scheduler.pending == 1
        scheduler.advance(1.0)
        assert calls == ["kept"]

    def test_callbacks_scheduled_while_running_fall_in_window(self, scheduler: ManualScheduler) -> None:
        seen: list[float] = []

        def first() -> None:
            seen.append(scheduler.now())
            scheduler.call_later(1.0, lambda: seen.append(scheduler.now()))

        scheduler.call_later(1.0, first)
        scheduler.advance(2.5)

        assert seen == [1.0, 2.0]
        assert scheduler.now() == 2.5

    def test_run_ready_does_not_move_clock(self, scheduler: ManualScheduler) -> None:
        calls: list[str] = []
        scheduler.call_soon(calls.append, "now")
        scheduler.call_later(0.5, calls.append, "later")

        scheduler.run_ready()

        assert calls == ["now"]
        assert scheduler.now() == 0.0

    def test_advance_to(self, scheduler: ManualScheduler) -> None:
        scheduler.advance_to(10.0)
        assert scheduler.now() == 10.0
        scheduler.advance_to(5.0)
        assert scheduler.now() == 10.0


@pytest.mark.asyncio
async def test_asyncio_scheduler_runs_callbacks() -> None:
    loop = asyncio.get_running_loop()
    scheduler = AsyncioScheduler()
    result = loop.create_future()

    scheduler.call_later(0.01, result.set_result, "done")

    assert await asyncio.wait_for(result, timeout=1.0) == "done"
    assert scheduler.loop is loop


@pytest.mark.asyncio
async def test_ping_round_trip_on_event_loop(test_settings) -> None:
    """Full probe between two peers driven by the real event loop."""
    scheduler = AsyncioScheduler()
    medium = InMemoryLink(scheduler, latency=0.01)
    primary = PrimaryPeer(medium.primary, scheduler, settings=test_settings)
    companion = CompanionPeer(medium.companion, scheduler)
    companion.start()

    finished = asyncio.get_running_loop().create_future()

    def on_report(report) -> None:
        if report.state in (ProbeState.SUCCEEDED, ProbeState.FAILED) and not finished.done():
            finished.set_result(report)

    primary.prober.subscribe(on_report)
    probe_id = primary.ping()

    report = await asyncio.wait_for(finished, timeout=2.0)
    assert report.state is ProbeState.SUCCEEDED
    assert report.probe_id == probe_id
    assert not primary.prober.is_probing
