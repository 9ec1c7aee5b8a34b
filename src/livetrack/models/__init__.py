"""Data models for livetrack."""

from livetrack.models.fix import FilteredPosition, RawFix
from livetrack.models.geo import LatLng
from livetrack.models.remote import RemoteLocation
from livetrack.models.route import (
    RouteCommit,
    RouteResult,
    RouteSnapshot,
    RouteStep,
    ThrottleState,
    parse_duration_text,
    strip_html,
)
from livetrack.models.sensor import SensorErrorCode, SensorStatus
from livetrack.models.visual import AnimationState, AnimatorPhase, VisualState

__all__ = [
    "AnimationState",
    "AnimatorPhase",
    "FilteredPosition",
    "LatLng",
    "RawFix",
    "RemoteLocation",
    "RouteCommit",
    "RouteResult",
    "RouteSnapshot",
    "RouteStep",
    "SensorErrorCode",
    "SensorStatus",
    "ThrottleState",
    "VisualState",
    "parse_duration_text",
    "strip_html",
]
