"""Top-level scan → report → broadcast loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from n26a_bt._constants import CYCLE_INTERVAL_S, REPORT_EVERY
from n26a_bt.aggregator import ScanAggregator
from n26a_bt.exceptions import N26aError
from n26a_bt.hub import BroadcastHub
from n26a_bt.models.snapshot import ScanSnapshot
from n26a_bt.reporter import should_report

_logger = logging.getLogger(__name__)

ReportCallable = Callable[[ScanSnapshot, int], Awaitable[None]]


class ScanScheduler:
    """Drive scan cycles forever.

    Every cycle the snapshot is published to the hub; every
    ``report_every``-th cycle (starting with the first) it is also passed
    to *report*. Report failures are logged and never stop the loop.
    """

    def __init__(
        self,
        aggregator: ScanAggregator,
        hub: BroadcastHub,
        *,
        report: ReportCallable | None = None,
        report_every: int = REPORT_EVERY,
        cycle_interval: float = CYCLE_INTERVAL_S,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._aggregator = aggregator
        self._hub = hub
        self._report = report
        self._report_every = report_every
        self._cycle_interval = cycle_interval
        self._sleep = sleep
        self._cycle_index = 0
        self._last_snapshot: ScanSnapshot | None = None

    @property
    def cycle_index(self) -> int:
        """Number of completed cycles."""
        return self._cycle_index

    @property
    def last_snapshot(self) -> ScanSnapshot | None:
        return self._last_snapshot

    async def run_once(self) -> ScanSnapshot:
        """Run one cycle: scan, maybe report, publish, count."""
        cycle_index = self._cycle_index
        snapshot = await self._aggregator.run_cycle(cycle_index)

        if self._report is not None and should_report(cycle_index, self._report_every):
            try:
                await self._report(snapshot, cycle_index)
            except asyncio.CancelledError:
                raise
            except N26aError as exc:
                _logger.warning("Error while sending occupancy report: %s", exc)
            except Exception:
                _logger.exception("Unexpected error while sending occupancy report")

        delivered = self._hub.publish(snapshot.to_message())
        _logger.debug("Snapshot %d published to %d subscriber(s)", cycle_index, delivered)

        self._last_snapshot = snapshot
        self._cycle_index += 1
        return snapshot

    async def run_forever(self) -> None:
        """Loop until cancelled; no single cycle failure ends it."""
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                _logger.exception("Scan cycle %d failed", self._cycle_index)
            await self._sleep(self._cycle_interval)
