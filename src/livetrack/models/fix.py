"""Positional fix models."""

from __future__ import annotations

import math
import time
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from livetrack.ingestion.normalize import normalize_timestamp_seconds, safe_float
from livetrack.models._base import TrackBaseModel
from livetrack.models.geo import LatLng


class RawFix(TrackBaseModel):
    """One sample from the location sensor.

    Parameters
    ----------
    latitude, longitude : float
        Position in degrees. Required.
    heading : float or None
        Course over ground in degrees, when the sensor reports one.
    speed : float or None
        Ground speed in m/s.
    accuracy : float or None
        Horizontal accuracy radius in metres.
    timestamp : float
        Epoch seconds. Millisecond inputs are normalized; a missing value
        is filled with the receive time.
    """

    latitude: float = Field(validation_alias=AliasChoices("latitude", "lat"), ge=-90.0, le=90.0)
    longitude: float = Field(validation_alias=AliasChoices("longitude", "lng", "lon"), ge=-180.0, le=180.0)
    heading: float | None = Field(default=None, validation_alias=AliasChoices("heading", "course", "direction"))
    speed: float | None = None
    accuracy: float | None = None
    timestamp: float = Field(default_factory=time.time)

    @model_validator(mode="before")
    @classmethod
    def _unwrap_coords(cls, values: Any) -> Any:
        # Browser-style payloads nest the numbers under "coords".
        if not isinstance(values, dict):
            return values
        coords = values.get("coords")
        if not isinstance(coords, dict):
            return values
        merged = dict(values)
        merged.pop("coords")
        merged.update(coords)
        merged.setdefault("raw", values)
        return merged

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_required(cls, value: Any) -> float:
        parsed = safe_float(value)
        if parsed is None:
            raise ValueError(f"not a coordinate: {value!r}")
        return parsed

    @field_validator("heading", "speed", "accuracy", mode="before")
    @classmethod
    def _coerce_optional(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("speed", "accuracy")
    @classmethod
    def _drop_negative(cls, value: float | None) -> float | None:
        # Sensors report -1 for "unknown".
        if value is not None and value < 0:
            return None
        return value

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> float:
        ts = normalize_timestamp_seconds(value)
        return ts if ts is not None else time.time()

    @property
    def position(self) -> LatLng:
        return LatLng(latitude=self.latitude, longitude=self.longitude)

    @property
    def has_course(self) -> bool:
        return self.heading is not None and math.isfinite(self.heading)


class FilteredPosition(BaseModel):
    """Smoothed device position emitted by the sample filter."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    timestamp: float

    @property
    def position(self) -> LatLng:
        return LatLng(latitude=self.latitude, longitude=self.longitude)
