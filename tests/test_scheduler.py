from __future__ import annotations

import asyncio
import json

import pytest

from n26a_bt.exceptions import N26aReportError
from n26a_bt.hub import BroadcastHub
from n26a_bt.models.snapshot import ScanSnapshot
from n26a_bt.scheduler import ScanScheduler


class _FakeAggregator:
    def __init__(self, *, fail_on: set[int] | None = None) -> None:
        self.fail_on = fail_on or set()
        self.cycles: list[int] = []

    async def run_cycle(self, cycle_index: int = 0) -> ScanSnapshot:
        self.cycles.append(cycle_index)
        if cycle_index in self.fail_on:
            self.fail_on.discard(cycle_index)
            raise RuntimeError("radio exploded")
        return ScanSnapshot.from_devices({f"DEV-{cycle_index}": "name"}, cycle_index=cycle_index)


class _Reports:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[int, int]] = []

    async def __call__(self, snapshot: ScanSnapshot, cycle_index: int) -> None:
        self.calls.append((cycle_index, snapshot.count))
        if self.error is not None:
            raise self.error


async def _no_sleep(_seconds: float) -> None:
    await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_reports_on_cycles_zero_and_five() -> None:
    reports = _Reports()
    scheduler = ScanScheduler(_FakeAggregator(), BroadcastHub(), report=reports)  # type: ignore[arg-type]

    for _ in range(6):
        await scheduler.run_once()

    assert [index for index, _count in reports.calls] == [0, 5]
    assert scheduler.cycle_index == 6


@pytest.mark.asyncio
async def test_every_cycle_is_published() -> None:
    hub = BroadcastHub(buffer_size=10)
    subscription = hub.subscribe()
    scheduler = ScanScheduler(_FakeAggregator(), hub)  # type: ignore[arg-type]

    await scheduler.run_once()
    await scheduler.run_once()

    assert json.loads(await subscription.get() or "") == {"DEV-0": "name"}
    assert json.loads(await subscription.get() or "") == {"DEV-1": "name"}
    assert scheduler.last_snapshot is not None
    assert scheduler.last_snapshot.cycle_index == 1


@pytest.mark.asyncio
async def test_report_failure_does_not_block_broadcast() -> None:
    hub = BroadcastHub()
    subscription = hub.subscribe()
    reports = _Reports(error=N26aReportError("HTTP 500"))
    scheduler = ScanScheduler(_FakeAggregator(), hub, report=reports)  # type: ignore[arg-type]

    await scheduler.run_once()

    assert reports.calls == [(0, 1)]
    assert await subscription.get() == '{"DEV-0":"name"}'
    assert scheduler.cycle_index == 1


@pytest.mark.asyncio
async def test_run_forever_survives_failing_cycle() -> None:
    aggregator = _FakeAggregator(fail_on={0})
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)
        if len(sleeps) >= 3:
            raise asyncio.CancelledError
        await asyncio.sleep(0)

    scheduler = ScanScheduler(
        aggregator,  # type: ignore[arg-type]
        BroadcastHub(),
        cycle_interval=50.0,
        sleep=fake_sleep,
    )

    with pytest.raises(asyncio.CancelledError):
        await scheduler.run_forever()

    # cycle 0 failed and was retried under the same index
    assert aggregator.cycles == [0, 0, 1]
    assert sleeps == [50.0, 50.0, 50.0]
    assert scheduler.cycle_index == 2


@pytest.mark.asyncio
async def test_unexpected_report_error_still_publishes_and_advances() -> None:
    hub = BroadcastHub()
    subscription = hub.subscribe()
    reports = _Reports(error=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"))
    scheduler = ScanScheduler(_FakeAggregator(), hub, report=reports)  # type: ignore[arg-type]

    await scheduler.run_once()

    assert await subscription.get() == '{"DEV-0":"name"}'
    assert scheduler.cycle_index == 1

    for _ in range(5):
        await scheduler.run_once()
    assert [index for index, _count in reports.calls] == [0, 5]
