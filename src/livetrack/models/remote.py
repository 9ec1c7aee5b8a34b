"""Remote tracked-entity location rows."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from livetrack.ingestion.normalize import parse_datetime, safe_float, safe_str
from livetrack.models._base import TrackBaseModel
from livetrack.models.geo import LatLng


class RemoteLocation(TrackBaseModel):
    """A location row written by the tracked device.

    Parameters
    ----------
    latitude, longitude : float
        Position in degrees. Required.
    created_at : datetime or None
        Row insertion time (UTC).
    user_id : str or None
        Identifier of the publishing device.
    """

    latitude: float = Field(validation_alias=AliasChoices("latitude", "lat"), ge=-90.0, le=90.0)
    longitude: float = Field(validation_alias=AliasChoices("longitude", "lng", "lon"), ge=-180.0, le=180.0)
    created_at: datetime | None = Field(default=None, validation_alias=AliasChoices("created_at", "createdAt"))
    user_id: str | None = Field(default=None, validation_alias=AliasChoices("user_id", "userId"))

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_required(cls, value: Any) -> float:
        parsed = safe_float(value)
        if parsed is None:
            raise ValueError(f"not a coordinate: {value!r}")
        return parsed

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_created_at(cls, value: Any) -> datetime | None:
        return parse_datetime(value)

    @field_validator("user_id", mode="before")
    @classmethod
    def _coerce_user_id(cls, value: Any) -> str | None:
        return safe_str(value)

    @property
    def position(self) -> LatLng:
        return LatLng(latitude=self.latitude, longitude=self.longitude)
