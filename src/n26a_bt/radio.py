"""Bluetooth LE radio behind a scan/stop contract."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from bleak import BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError

from n26a_bt.exceptions import N26aScanError, N26aStopError
from n26a_bt.models.observation import DeviceObservation

_logger = logging.getLogger(__name__)

ObservationCallback = Callable[[DeviceObservation], None]


class RadioScanner(Protocol):
    """Capability used by :class:`~n26a_bt.aggregator.ScanAggregator`.

    ``scan`` delivers observations to the callback and returns once the
    scan has been stopped. ``stop_scan`` ends the active scan.
    """

    async def scan(self, on_observation: ObservationCallback) -> None:
        ...

    async def stop_scan(self) -> None:
        ...


class BleakRadio:
    """:class:`RadioScanner` backed by :class:`bleak.BleakScanner`."""

    def __init__(self, *, adapter: str | None = None, scanning_mode: str = "active") -> None:
        self._adapter = adapter
        self._scanning_mode = scanning_mode
        self._scanner: BleakScanner | None = None
        self._stopped: asyncio.Event | None = None

    async def scan(self, on_observation: ObservationCallback) -> None:
        """Start scanning and block until :meth:`stop_scan` is called.

        Raises
        ------
        N26aScanError
            If the adapter refuses to start scanning.
        """
        stopped = asyncio.Event()
        self._stopped = stopped

        def detection_callback(device: BLEDevice, adv: AdvertisementData) -> None:
            on_observation(
                DeviceObservation(
                    address=device.address,
                    local_name=adv.local_name or device.name or "",
                    rssi=adv.rssi,
                )
            )

        scanner_kwargs: dict[str, Any] = {
            "detection_callback": detection_callback,
            "scanning_mode": self._scanning_mode,
        }
        if self._adapter:
            scanner_kwargs["adapter"] = self._adapter

        scanner = BleakScanner(**scanner_kwargs)
        try:
            await scanner.start()
        except (BleakError, OSError) as exc:
            self._stopped = None
            raise N26aScanError(f"Failed to start BLE scan: {exc}") from exc

        _logger.debug("BLE scan started adapter=%s", self._adapter or "default")

        if stopped.is_set():
            # stop_scan ran while the scanner was still starting
            await self._stop_scanner(scanner)
            return
        self._scanner = scanner
        await stopped.wait()

    async def stop_scan(self) -> None:
        """Stop the active scan and release :meth:`scan`.

        The waiting :meth:`scan` call is released even when stopping fails.

        Raises
        ------
        N26aStopError
            If the adapter reports an error while stopping.
        """
        scanner = self._scanner
        stopped = self._stopped
        self._scanner = None
        self._stopped = None
        try:
            if scanner is not None:
                await self._stop_scanner(scanner)
        finally:
            if stopped is not None:
                stopped.set()

    async def _stop_scanner(self, scanner: BleakScanner) -> None:
        try:
            await scanner.stop()
        except (BleakError, OSError) as exc:
            raise N26aStopError(f"Failed to stop BLE scan: {exc}") from exc
        _logger.debug("BLE scan stopped")
