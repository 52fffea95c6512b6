"""Custom exception hierarchy for n26a_bt."""

from __future__ import annotations


class N26aError(Exception):
    """Base exception for all n26a_bt errors."""


class N26aConfigError(N26aError):
    """Invalid or missing configuration."""


class N26aFatalInitError(N26aError):
    """Random value or identifier generation failed.

    Only expected while the web surface is being set up; per-request
    handlers turn it into an error response instead of crashing.
    """


class N26aTransportError(N26aError):
    """HTTP-level failure (network, timeout)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class N26aAuthError(N26aError):
    """Login failed.

    ``reason`` is one of ``"rejected"``, ``"unreachable"`` or
    ``"malformed-response"``.
    """

    REJECTED = "rejected"
    UNREACHABLE = "unreachable"
    MALFORMED_RESPONSE = "malformed-response"

    def __init__(
        self,
        message: str,
        *,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        self.reason = reason
        self.status_code = status_code
        super().__init__(message)


class N26aCredentialStoreError(N26aError, OSError):
    """Credential persistence failed (the in-memory credential stays usable)."""


class N26aReportError(N26aError):
    """Occupancy report could not be delivered."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class N26aScanError(N26aError):
    """The radio failed to start or run a scan."""


class N26aStopError(N26aScanError):
    """The radio failed to stop an active scan."""
