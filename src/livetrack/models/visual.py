"""Animated marker state."""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field

from livetrack.models.geo import LatLng


class AnimatorPhase(enum.StrEnum):
    IDLE = "idle"
    ANIMATING = "animating"
    SETTLED = "settled"


class VisualState(BaseModel):
    """What a marker currently shows. Immutable, so it is safe to keep as a snapshot."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    heading: float = 0.0

    @property
    def position(self) -> LatLng:
        return LatLng(latitude=self.latitude, longitude=self.longitude)


class AnimationState(BaseModel):
    """One glide from ``from_state`` to ``to_state``.

    ``from_state`` is the visual value captured when the target arrived,
    never the previous target.
    """

    model_config = ConfigDict(frozen=True)

    from_state: VisualState
    to_state: VisualState
    start_time: float
    duration: float = Field(gt=0)
