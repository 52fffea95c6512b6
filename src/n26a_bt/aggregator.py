"""One bounded scan cycle and its device aggregation."""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from collections.abc import Awaitable, Callable

from n26a_bt._constants import RSSI_THRESHOLD, SCAN_WINDOW_S, STOP_GRACE_S
from n26a_bt.models.observation import DeviceObservation
from n26a_bt.models.snapshot import ScanSnapshot
from n26a_bt.radio import RadioScanner

_logger = logging.getLogger(__name__)


class CycleState(enum.StrEnum):
    IDLE = "idle"
    SCANNING = "scanning"
    STOPPING_SCAN = "stopping_scan"
    DONE = "done"


class ScanAggregator:
    """Run scan cycles against a :class:`~n26a_bt.radio.RadioScanner`.

    Each cycle scans for ``scan_window`` seconds, keeps observations with
    ``rssi >= rssi_threshold`` keyed by address (last write wins), and
    returns them as a :class:`ScanSnapshot`. The cycle finishes only when
    both the scan and the deferred stop have completed; a scan that does
    not exit within ``stop_grace`` seconds of the stop is cancelled.
    Cycles never overlap.
    """

    def __init__(
        self,
        radio: RadioScanner,
        *,
        rssi_threshold: int = RSSI_THRESHOLD,
        scan_window: float = SCAN_WINDOW_S,
        stop_grace: float = STOP_GRACE_S,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._radio = radio
        self._rssi_threshold = rssi_threshold
        self._scan_window = scan_window
        self._stop_grace = stop_grace
        self._sleep = sleep
        self._state = CycleState.IDLE
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def rssi_threshold(self) -> int:
        return self._rssi_threshold

    def accepts(self, observation: DeviceObservation) -> bool:
        """Whether *observation* is strong enough to be counted."""
        return observation.rssi >= self._rssi_threshold

    async def run_cycle(self, cycle_index: int = 0) -> ScanSnapshot:
        """Scan once and return the aggregated snapshot."""
        async with self._lock:
            devices: dict[str, str] = {}

            def on_observation(observation: DeviceObservation) -> None:
                if self.accepts(observation):
                    devices[observation.address] = observation.local_name

            self._state = CycleState.SCANNING
            scan_task = asyncio.create_task(self._scan(on_observation))
            stop_task = asyncio.create_task(self._stop_after_window())
            try:
                await stop_task
                await self._join_scan(scan_task)
            finally:
                for task in (scan_task, stop_task):
                    if not task.done():
                        task.cancel()
                        with contextlib.suppress(asyncio.CancelledError):
                            await task

            self._state = CycleState.DONE
            snapshot = ScanSnapshot.from_devices(devices, cycle_index=cycle_index)
            _logger.info("Scan cycle %d done: %d device(s)", cycle_index, snapshot.count)
            return snapshot

    async def _scan(self, on_observation: Callable[[DeviceObservation], None]) -> None:
        try:
            await self._radio.scan(on_observation)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _logger.warning("Error during scan: %s", exc)

    async def _stop_after_window(self) -> None:
        await self._sleep(self._scan_window)
        self._state = CycleState.STOPPING_SCAN
        try:
            await self._radio.stop_scan()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _logger.warning("Error while stopping scan: %s", exc)

    async def _join_scan(self, scan_task: asyncio.Task[None]) -> None:
        _done, pending = await asyncio.wait({scan_task}, timeout=self._stop_grace)
        if pending:
            _logger.warning("Scan did not exit %.1fs after stop; cancelling it", self._stop_grace)
            scan_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await scan_task
