"""Route request and result models."""

from __future__ import annotations

import enum
import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from livetrack.ingestion.normalize import safe_float, safe_str
from livetrack.models._base import TrackBaseModel
from livetrack.models.geo import LatLng

_TAG_RE = re.compile(r"<[^>]*>")
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(d|day|days|h|hr|hrs|hour|hours|m|min|mins|minute|minutes|s|sec|secs|second|seconds)\b", re.IGNORECASE)
_UNIT_SECONDS: dict[str, float] = {"d": 86400.0, "h": 3600.0, "m": 60.0, "s": 1.0}


def strip_html(text: str) -> str:
    """Drop markup from a routing instruction (``"Turn <b>left</b>"`` -> ``"Turn left"``)."""
    return " ".join(_TAG_RE.sub(" ", text).split())


def parse_duration_text(text: str | None) -> float | None:
    """Parse a human duration such as ``"1 hour 5 mins"`` into seconds.

    A bare number is read as minutes. Returns ``None`` when nothing numeric
    is found.
    """
    if not text:
        return None
    total = 0.0
    matched = False
    for amount, unit in _DURATION_PART_RE.findall(text):
        total += float(amount) * _UNIT_SECONDS[unit[0].lower()]
        matched = True
    if matched:
        return total
    bare = re.search(r"\d+", text)
    if bare is None:
        return None
    return float(bare.group(0)) * 60.0


class ThrottleState(enum.StrEnum):
    IDLE = "idle"
    PENDING_DESTINATION = "pending_destination"
    RATE_LIMITED = "rate_limited"
    REQUESTING = "requesting"
    READY = "ready"
    FAILED = "failed"


class RouteCommit(BaseModel):
    """Origin/destination pair last committed for routing."""

    model_config = ConfigDict(frozen=True)

    origin: LatLng
    destination: LatLng


class RouteStep(TrackBaseModel):
    """One manoeuvre of a route leg."""

    instruction: str = ""
    distance_text: str = ""
    distance_m: float | None = None

    @field_validator("instruction", mode="before")
    @classmethod
    def _strip_markup(cls, value: Any) -> str:
        text = safe_str(value)
        return strip_html(text) if text else ""

    @field_validator("distance_m", mode="before")
    @classmethod
    def _coerce_distance(cls, value: Any) -> float | None:
        return safe_float(value)


class RouteResult(TrackBaseModel):
    """Summary of the first leg of a routing response.

    Parameters
    ----------
    distance_text, duration_text : str
        Human-readable leg totals as returned by the routing service.
    distance_m : float or None
        Leg distance in metres.
    duration_s : float or None
        Leg duration in seconds.
    polyline : str or None
        Encoded overview polyline.
    steps : list of RouteStep
        Manoeuvres in travel order.
    """

    distance_text: str = "..."
    duration_text: str = "..."
    distance_m: float | None = None
    duration_s: float | None = None
    polyline: str | None = None
    steps: list[RouteStep] = Field(default_factory=list)

    @field_validator("distance_m", "duration_s", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @property
    def travel_seconds(self) -> float | None:
        """Duration in seconds, falling back to parsing ``duration_text``."""
        if self.duration_s is not None:
            return self.duration_s
        return parse_duration_text(self.duration_text)


class RouteSnapshot(BaseModel):
    """What consumers of the route throttle see after every transition."""

    model_config = ConfigDict(frozen=True)

    state: ThrottleState
    result: RouteResult | None = None
    stale: bool = False
    eta: datetime | None = None
    commit: RouteCommit | None = None
    error: str | None = None
