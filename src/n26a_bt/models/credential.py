"""Bearer credential model."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, field_validator


def parse_expiry(value: str) -> datetime | None:
    """Parse an RFC 3339 expiry string into an aware UTC datetime.

    Returns ``None`` when the value is not a timestamp or carries no
    timezone offset.
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        return None
    return parsed.astimezone(UTC)


class Credential(BaseModel):
    """Token returned by login and cached on disk.

    Parameters
    ----------
    token : str
        Opaque bearer token.
    exp : str
        Expiry as sent by the backend (RFC 3339). Kept verbatim so an
        unparseable value can still be persisted and rejected later.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    token: str
    exp: str

    @field_validator("token", "exp")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must be non-empty")
        return value

    @property
    def expires_at(self) -> datetime | None:
        """Parsed expiry, or ``None`` if ``exp`` is not a valid timestamp."""
        return parse_expiry(self.exp)

    def __repr__(self) -> str:
        return f"Credential(token=<redacted>, exp={self.exp!r})"

    __str__ = __repr__


def is_expired(credential: Credential, now: datetime | None = None) -> bool:
    """Return ``True`` if *credential* must not be used at *now*.

    Unparseable expiries count as expired.
    """
    expires_at = credential.expires_at
    if expires_at is None:
        return True
    current = now if now is not None else datetime.now(UTC)
    if current.tzinfo is None:
        current = current.replace(tzinfo=UTC)
    return current >= expires_at
