"""Runtime configuration for n26a_bt."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from n26a_bt._constants import (
    AUTH_URL,
    CYCLE_INTERVAL_S,
    DEFAULT_HOST,
    DEFAULT_PORT,
    LOG_URL,
    REPORT_EVERY,
    REPORT_TIMEOUT_S,
    RSSI_THRESHOLD,
    SCAN_WINDOW_S,
    SOURCE_TYPE_ID,
    STOP_GRACE_S,
)
from n26a_bt.exceptions import N26aConfigError

#: Sentinel location id used when none has been configured.
UNSET_LOCATION_ID = -1


def _env_int(env_key: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise N26aConfigError(f"{env_key} must be an integer, got {value!r}") from exc


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value.strip())
    except ValueError as exc:
        raise N26aConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class N26aConfig:
    """Service configuration.

    Parameters
    ----------
    location_id : int
        Location the occupancy counts are logged against. ``-1`` means
        "not configured".
    user_id : str
        Login id for the logging backend.
    password : str
        Login password for the logging backend.
    auth_url : str
        Login endpoint.
    log_url : str
        Occupancy report endpoint.
    host : str
        Interface the web surface binds to.
    port : int
        Port the web surface binds to.
    rssi_threshold : int
        Minimum signal strength (dBm, inclusive) for a device to count.
    scan_window : float
        Seconds the radio listens per cycle.
    cycle_interval : float
        Seconds slept between cycles.
    stop_grace : float
        Seconds to wait for the scan to exit once stop has been issued.
    report_every : int
        Report cadence in cycles.
    report_timeout : float
        Timeout in seconds for a single report request.
    source_type_id : int
        Source type sent with every report.
    credential_dir : str or None
        Directory for the cached credential. ``None`` uses the platform
        cache directory, falling back to the config directory.
    adapter : str or None
        Bluetooth adapter name (e.g. ``"hci0"``). ``None`` uses the default.
    """

    location_id: int = UNSET_LOCATION_ID
    user_id: str = ""
    password: str = ""
    auth_url: str = AUTH_URL
    log_url: str = LOG_URL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    rssi_threshold: int = RSSI_THRESHOLD
    scan_window: float = SCAN_WINDOW_S
    cycle_interval: float = CYCLE_INTERVAL_S
    stop_grace: float = STOP_GRACE_S
    report_every: int = REPORT_EVERY
    report_timeout: float = REPORT_TIMEOUT_S
    source_type_id: int = SOURCE_TYPE_ID
    credential_dir: str | None = None
    adapter: str | None = None

    def __post_init__(self) -> None:
        if self.report_every <= 0:
            raise N26aConfigError(f"report_every must be positive, got {self.report_every}")
        if self.scan_window <= 0:
            raise N26aConfigError(f"scan_window must be positive, got {self.scan_window}")

    @property
    def has_login(self) -> bool:
        """Whether both login fields are populated."""
        return bool(self.user_id) and bool(self.password)

    @classmethod
    def from_env(cls, **overrides: Any) -> N26aConfig:
        """Create configuration from environment variables.

        Reads ``N26A_BT_LOCATE_ID``, ``N26A_BT_USERID``, ``N26A_BT_PASS``
        and the optional ``N26A_BT_*`` variables below. Explicit keyword
        arguments override environment values.

        Raises
        ------
        N26aConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "N26A_BT_USERID": "user_id",
            "N26A_BT_PASS": "password",
            "N26A_BT_AUTH_URL": "auth_url",
            "N26A_BT_LOG_URL": "log_url",
            "N26A_BT_HOST": "host",
            "N26A_BT_CREDENTIAL_DIR": "credential_dir",
            "N26A_BT_ADAPTER": "adapter",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        _ENV_INT_MAP = {
            "N26A_BT_LOCATE_ID": "location_id",
            "N26A_BT_PORT": "port",
            "N26A_BT_RSSI_THRESHOLD": "rssi_threshold",
            "N26A_BT_REPORT_EVERY": "report_every",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val and field_name not in overrides:
                config_kwargs[field_name] = _env_int(env_key, val)

        _ENV_FLOAT_MAP = {
            "N26A_BT_SCAN_WINDOW": "scan_window",
            "N26A_BT_CYCLE_INTERVAL": "cycle_interval",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
