"""Signal-processing and timing stages of the tracking pipeline.

Each stage owns its state and mutates it only through its own methods;
stages talk to each other through immutable model values.
"""

from livetrack.pipeline.animator import PositionAnimator
from livetrack.pipeline.filter import GeoSampleFilter
from livetrack.pipeline.guidance import GuidanceAnnouncer
from livetrack.pipeline.heading import HeadingFusion
from livetrack.pipeline.throttle import RouteThrottle
from livetrack.pipeline.viewport import Viewport, ViewportController

__all__ = [
    "GeoSampleFilter",
    "GuidanceAnnouncer",
    "HeadingFusion",
    "PositionAnimator",
    "RouteThrottle",
    "Viewport",
    "ViewportController",
]
