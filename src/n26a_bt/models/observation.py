"""Radio observation model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DeviceObservation:
    """A single advertisement heard during a scan.

    Parameters
    ----------
    address : str
        Stable hardware identifier reported by the radio.
    local_name : str
        Advertised name, empty when the device does not broadcast one.
    rssi : int
        Received signal strength in dBm.
    """

    address: str
    local_name: str
    rssi: int
