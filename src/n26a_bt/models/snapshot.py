"""Per-cycle scan snapshot."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class ScanSnapshot(BaseModel):
    """Devices seen during one completed scan cycle.

    ``devices`` maps address to advertised name. The model is frozen and
    the mapping is copied on construction, so a snapshot handed to the
    reporter or the broadcast hub cannot change underneath them.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    devices: dict[str, str] = Field(default_factory=dict)
    cycle_index: int = 0
    completed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_devices(cls, devices: Mapping[str, str], cycle_index: int = 0) -> ScanSnapshot:
        return cls(devices=dict(devices), cycle_index=cycle_index)

    @property
    def count(self) -> int:
        """Number of unique devices in the snapshot."""
        return len(self.devices)

    def __len__(self) -> int:
        return len(self.devices)

    def to_message(self) -> str:
        """Serialize the device map for the event stream."""
        return json.dumps(self.devices, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
