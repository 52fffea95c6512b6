"""Remote login against the logging backend."""

from __future__ import annotations

import logging

from n26a_bt._api.login import build_login_request, parse_login_response
from n26a_bt._transport import Transport
from n26a_bt.exceptions import N26aAuthError, N26aTransportError
from n26a_bt.models.credential import Credential

_logger = logging.getLogger(__name__)


class AuthClient:
    """Obtain bearer credentials from the authentication endpoint."""

    def __init__(self, transport: Transport, auth_url: str, *, timeout: float | None = None) -> None:
        self._transport = transport
        self._auth_url = auth_url
        self._timeout = timeout

    async def login(self, user_id: str, password: str) -> Credential:
        """Log in and return the issued credential.

        Raises
        ------
        N26aAuthError
            With ``reason`` set to ``"unreachable"``, ``"rejected"`` or
            ``"malformed-response"``.
        """
        payload = build_login_request(user_id, password)
        try:
            response = await self._transport.post_json(self._auth_url, payload, timeout=self._timeout)
        except N26aTransportError as exc:
            raise N26aAuthError(
                f"Login endpoint unreachable: {exc}",
                reason=N26aAuthError.UNREACHABLE,
            ) from exc

        credential = parse_login_response(response.status, response.text)
        _logger.info("Logged in, token valid until %s", credential.exp)
        return credential
