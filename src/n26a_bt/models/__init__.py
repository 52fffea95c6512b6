"""Data models for n26a_bt."""

from n26a_bt.models.credential import Credential, is_expired, parse_expiry
from n26a_bt.models.observation import DeviceObservation
from n26a_bt.models.requests import LoginRequest, LoginResponse, OccupancyReport
from n26a_bt.models.snapshot import ScanSnapshot

__all__ = [
    "Credential",
    "DeviceObservation",
    "LoginRequest",
    "LoginResponse",
    "OccupancyReport",
    "ScanSnapshot",
    "is_expired",
    "parse_expiry",
]
