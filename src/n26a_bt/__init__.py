"""n26a_bt - Bluetooth LE occupancy counter with live streaming and remote logging."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("n26a-bt")
except PackageNotFoundError:
    __version__ = "0+local"
from n26a_bt.aggregator import CycleState, ScanAggregator
from n26a_bt.auth import AuthClient
from n26a_bt.client import N26aClient
from n26a_bt.config import N26aConfig
from n26a_bt.credentials import CredentialStore
from n26a_bt.exceptions import (
    N26aAuthError,
    N26aConfigError,
    N26aCredentialStoreError,
    N26aError,
    N26aFatalInitError,
    N26aReportError,
    N26aScanError,
    N26aStopError,
    N26aTransportError,
)
from n26a_bt.hub import BroadcastHub, Subscription
from n26a_bt.models import Credential, DeviceObservation, ScanSnapshot, is_expired
from n26a_bt.radio import BleakRadio, RadioScanner
from n26a_bt.reporter import LogReporter, should_report
from n26a_bt.scheduler import ScanScheduler

__all__ = [
    "__version__",
    "AuthClient",
    "BleakRadio",
    "BroadcastHub",
    "Credential",
    "CredentialStore",
    "CycleState",
    "DeviceObservation",
    "LogReporter",
    "N26aAuthError",
    "N26aClient",
    "N26aConfig",
    "N26aConfigError",
    "N26aCredentialStoreError",
    "N26aError",
    "N26aFatalInitError",
    "N26aReportError",
    "N26aScanError",
    "N26aStopError",
    "N26aTransportError",
    "RadioScanner",
    "ScanAggregator",
    "ScanScheduler",
    "ScanSnapshot",
    "Subscription",
    "is_expired",
    "should_report",
]
