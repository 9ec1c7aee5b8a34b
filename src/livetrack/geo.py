"""Spherical geometry and angle helpers."""

from __future__ import annotations

import math

from livetrack._constants import EARTH_RADIUS_M
from livetrack.models.geo import LatLng


def haversine_m(a: LatLng, b: LatLng) -> float:
    """Great-circle distance in metres between *a* and *b*."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)
    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def lerp(start: float, end: float, t: float) -> float:
    return start * (1 - t) + end * t


def lerp_latlng(start: LatLng, end: LatLng, t: float) -> LatLng:
    """Per-axis linear interpolation.

    Good enough at the scale of consecutive fixes; not geodesic-exact.
    """
    return LatLng(
        latitude=lerp(start.latitude, end.latitude, t),
        longitude=lerp(start.longitude, end.longitude, t),
    )


def normalize_heading(degrees: float) -> float:
    """Wrap *degrees* into ``[0, 360)``."""
    wrapped = degrees % 360.0
    # -1e-15 % 360 rounds to 360.0
    if wrapped >= 360.0:
        return 0.0
    return wrapped


def angle_delta(from_deg: float, to_deg: float) -> float:
    """Signed shortest rotation from *from_deg* to *to_deg*, in ``[-180, 180)``."""
    return (to_deg - from_deg + 180.0) % 360.0 - 180.0


def lerp_heading(start: float, end: float, t: float) -> float:
    """Interpolate along the shortest arc between two headings."""
    return normalize_heading(start + angle_delta(start, end) * t)


def circular_mean(headings: list[float] | tuple[float, ...]) -> float | None:
    """Mean direction of *headings* (degrees) via summed unit vectors.

    Returns ``None`` for an empty input. Handles the 0/360 wraparound, so the
    mean of 359 and 1 is 0, not 180.
    """
    if not headings:
        return None
    sum_sin = 0.0
    sum_cos = 0.0
    for heading in headings:
        rad = math.radians(heading)
        sum_sin += math.sin(rad)
        sum_cos += math.cos(rad)
    count = len(headings)
    mean = math.degrees(math.atan2(sum_sin / count, sum_cos / count))
    return normalize_heading(mean)
