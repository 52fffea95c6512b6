"""Outbound request and response payloads.

The backend speaks camelCase; the models map it onto snake_case fields
and are serialized with ``by_alias=True``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from n26a_bt.models.credential import Credential


class LoginRequest(BaseModel):
    """Body of ``POST <auth_url>``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(alias="id")
    password: str


class LoginResponse(BaseModel):
    """Body returned by a successful login."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    message: str = ""
    token: Credential


class OccupancyReport(BaseModel):
    """Body of ``POST <log_url>``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    location_id: int = Field(alias="locateId")
    source_type_id: int = Field(alias="srcTypeId")
    count: int = Field(ge=0)
