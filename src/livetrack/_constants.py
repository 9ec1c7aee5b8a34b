"""Internal constants shared across the library."""

EARTH_RADIUS_M = 6_371_000.0
USER_AGENT = "livetrack/0 (+aiohttp)"

DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
NAVIGATION_URL = "https://www.google.com/maps/dir/"

# ------------------------------------------------------------------
# Device orientation
# ------------------------------------------------------------------

_FULL_TURN = 360.0


def compass_from_alpha(alpha: float) -> float:
    """Convert a DeviceOrientation ``alpha`` angle to a compass heading.

    ``alpha`` grows counter-clockwise while compass headings grow clockwise.
    """
    return (_FULL_TURN - float(alpha)) % _FULL_TURN
