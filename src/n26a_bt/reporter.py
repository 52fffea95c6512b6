"""Periodic occupancy reporting."""

from __future__ import annotations

import logging

from n26a_bt._api.report import bearer_header, build_report_request
from n26a_bt._constants import REPORT_EVERY, REPORT_TIMEOUT_S, SOURCE_TYPE_ID
from n26a_bt._transport import Transport
from n26a_bt.exceptions import N26aReportError, N26aTransportError
from n26a_bt.models.credential import Credential, is_expired
from n26a_bt.models.snapshot import ScanSnapshot

_logger = logging.getLogger(__name__)


def should_report(cycle_index: int, every: int = REPORT_EVERY) -> bool:
    """Whether *cycle_index* is a reporting cycle (0, every, 2*every, ...)."""
    return cycle_index % every == 0


class LogReporter:
    """Send the device count of a snapshot to the logging backend."""

    def __init__(
        self,
        transport: Transport,
        log_url: str,
        *,
        source_type_id: int = SOURCE_TYPE_ID,
        timeout: float = REPORT_TIMEOUT_S,
    ) -> None:
        self._transport = transport
        self._log_url = log_url
        self._source_type_id = source_type_id
        self._timeout = timeout

    async def report(
        self,
        snapshot: ScanSnapshot,
        location_id: int,
        cycle_index: int,
        credential: Credential,
    ) -> None:
        """POST the occupancy count of *snapshot*.

        Raises
        ------
        N26aReportError
            On an expired credential, encode failure, transport failure or
            a non-2xx response (message carries status and body).
        """
        if is_expired(credential):
            raise N26aReportError("Credential expired, refusing to report")

        payload = build_report_request(location_id, self._source_type_id, snapshot.count)
        try:
            response = await self._transport.post_json(
                self._log_url,
                payload,
                headers=bearer_header(credential.token),
                timeout=self._timeout,
            )
        except N26aTransportError as exc:
            raise N26aReportError(f"Failed to send occupancy report: {exc}") from exc

        if not response.ok:
            raise N26aReportError(
                f"Occupancy report rejected: HTTP {response.status}, body: {response.text[:200]}",
                status_code=response.status,
                body=response.text,
            )

        _logger.info(
            "[%d] Occupancy report sent (cycle=%d location=%d count=%d)",
            response.status,
            cycle_index,
            location_id,
            snapshot.count,
        )
