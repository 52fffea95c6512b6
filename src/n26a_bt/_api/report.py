"""Occupancy report endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from n26a_bt.exceptions import N26aReportError
from n26a_bt.models.requests import OccupancyReport


def build_report_request(location_id: int, source_type_id: int, count: int) -> dict[str, Any]:
    """Build ``{"locateId", "srcTypeId", "count"}``.

    Raises
    ------
    N26aReportError
        If the values cannot be encoded (e.g. a negative count).
    """
    try:
        report = OccupancyReport(location_id=location_id, source_type_id=source_type_id, count=count)
    except ValidationError as exc:
        raise N26aReportError(f"Failed to encode occupancy report: {exc}") from exc
    return report.model_dump(by_alias=True)


def bearer_header(token: str) -> dict[str, str]:
    return {"authorization": f"Bearer {token}"}
