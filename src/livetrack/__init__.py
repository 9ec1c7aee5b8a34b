"""livetrack - Async live-tracking pipeline: fix smoothing, heading fusion, marker animation and throttled routing."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("livetrack")
except PackageNotFoundError:
    __version__ = "0+local"
from livetrack._api.directions import DirectionsRouter, navigation_url
from livetrack._mqtt import MqttLocationFeed, RemoteFeed
from livetrack._scheduling import LoopScheduler, Scheduler
from livetrack.config import MqttProfile, TrackerConfig
from livetrack.exceptions import (
    LiveTrackConfigError,
    LiveTrackError,
    LiveTrackTransportError,
    PayloadError,
    RoutingError,
    SensorError,
)
from livetrack.models import (
    AnimatorPhase,
    FilteredPosition,
    LatLng,
    RawFix,
    RemoteLocation,
    RouteResult,
    RouteSnapshot,
    RouteStep,
    SensorErrorCode,
    SensorStatus,
    ThrottleState,
    VisualState,
)
from livetrack.pipeline import (
    GeoSampleFilter,
    GuidanceAnnouncer,
    HeadingFusion,
    PositionAnimator,
    RouteThrottle,
    Viewport,
    ViewportController,
)
from livetrack.sensors import LocationSensor, StreamLocationSensor
from livetrack.session import TrackingSession

__all__ = [
    "__version__",
    "AnimatorPhase",
    "DirectionsRouter",
    "FilteredPosition",
    "GeoSampleFilter",
    "GuidanceAnnouncer",
    "HeadingFusion",
    "LatLng",
    "LiveTrackConfigError",
    "LiveTrackError",
    "LiveTrackTransportError",
    "LocationSensor",
    "LoopScheduler",
    "MqttLocationFeed",
    "MqttProfile",
    "PayloadError",
    "PositionAnimator",
    "RawFix",
    "RemoteFeed",
    "RemoteLocation",
    "RouteResult",
    "RouteSnapshot",
    "RouteStep",
    "RouteThrottle",
    "RoutingError",
    "Scheduler",
    "SensorError",
    "SensorErrorCode",
    "SensorStatus",
    "StreamLocationSensor",
    "ThrottleState",
    "TrackingSession",
    "TrackerConfig",
    "Viewport",
    "ViewportController",
    "VisualState",
    "navigation_url",
]
