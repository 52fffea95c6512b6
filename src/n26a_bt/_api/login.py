"""Login endpoint.

Request body ``{"id": ..., "password": ...}``; a successful response
looks like ``{"message": ..., "token": {"token": ..., "exp": ...}}``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from n26a_bt._redact import redact_for_log
from n26a_bt.exceptions import N26aAuthError
from n26a_bt.models.credential import Credential
from n26a_bt.models.requests import LoginRequest, LoginResponse

_logger = logging.getLogger(__name__)


def build_login_request(user_id: str, password: str) -> dict[str, Any]:
    """Build the JSON body for the login endpoint."""
    return LoginRequest(user_id=user_id, password=password).model_dump(by_alias=True)


def parse_login_response(status: int, text: str) -> Credential:
    """Turn a login HTTP response into a :class:`Credential`.

    Raises
    ------
    N26aAuthError
        ``rejected`` for any status other than 200, ``malformed-response``
        when the body is not JSON or lacks ``token.token`` / ``token.exp``.
    """
    if status != 200:
        raise N26aAuthError(
            f"Login rejected: HTTP {status}",
            reason=N26aAuthError.REJECTED,
            status_code=status,
        )

    try:
        body = json.loads(text)
    except json.JSONDecodeError as exc:
        raise N26aAuthError(
            f"Login response is not JSON: {text[:64]}",
            reason=N26aAuthError.MALFORMED_RESPONSE,
            status_code=status,
        ) from exc

    _logger.debug("Login response parsed=%s", redact_for_log(body))

    try:
        response = LoginResponse.model_validate(body)
    except ValidationError as exc:
        raise N26aAuthError(
            "Login response missing token fields",
            reason=N26aAuthError.MALFORMED_RESPONSE,
            status_code=status,
        ) from exc

    return response.token
