"""JSON-over-HTTP transport shared by login and reporting."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from n26a_bt._constants import APP_NAME
from n26a_bt._redact import redact_for_log
from n26a_bt.exceptions import N26aTransportError

_logger = logging.getLogger(__name__)

USER_AGENT = f"{APP_NAME}/1.1"


@dataclass(frozen=True)
class HttpResponse:
    """Status and body of a completed request."""

    status: int
    text: str

    @property
    def ok(self) -> bool:
        return self.status // 100 == 2

    def json(self) -> Any:
        return json.loads(self.text)


class Transport(Protocol):
    """Structural transport interface used by the auth and report modules.

    Tests pass small fakes with the same ``post_json`` signature; the
    production implementation is :class:`JsonTransport`.
    """

    async def post_json(
        self,
        url: str,
        payload: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        ...


class JsonTransport:
    """POST JSON bodies through a shared :class:`aiohttp.ClientSession`."""

    def __init__(self, http_session: aiohttp.ClientSession) -> None:
        self._http = http_session

    async def post_json(
        self,
        url: str,
        payload: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        """Send *payload* as JSON and return the raw status and body.

        Non-2xx statuses are returned, not raised; callers decide what
        counts as success.

        Raises
        ------
        N26aTransportError
            On connection failures and timeouts.
        """
        body = json.dumps(payload, separators=(",", ":"))
        request_headers: dict[str, str] = {
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }
        if headers:
            request_headers.update(headers)

        request_kwargs: dict[str, Any] = {}
        if timeout is not None:
            request_kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)
        _logger.debug("POST %s headers=%s", url, redact_for_log(request_headers))

        try:
            async with self._http.post(
                url,
                data=body,
                headers=request_headers,
                **request_kwargs,
            ) as resp:
                raw = await resp.read()
                status = resp.status
        except TimeoutError as exc:
            raise N26aTransportError(f"Request to {url} timed out", url=url) from exc
        except aiohttp.ClientError as exc:
            raise N26aTransportError(f"Request to {url} failed: {exc}", url=url) from exc

        text = raw.decode("utf-8", errors="replace")
        _logger.debug("POST %s -> HTTP %s", url, status)
        return HttpResponse(status=status, text=text)
