"""Coordinate value type."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class LatLng(BaseModel):
    """A WGS84 coordinate in degrees."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    latitude: float = Field(validation_alias=AliasChoices("latitude", "lat"), ge=-90.0, le=90.0)
    longitude: float = Field(validation_alias=AliasChoices("longitude", "lng", "lon"), ge=-180.0, le=180.0)

    def as_query(self) -> str:
        """``"lat,lng"`` as used in routing and deep-link URLs."""
        return f"{self.latitude},{self.longitude}"
