"""Location sensor status and error codes."""

from __future__ import annotations

import enum

from livetrack.models._base import TrackEnum


class SensorErrorCode(TrackEnum):
    """Geolocation failure codes, numbered like the W3C ``GeolocationPositionError``."""

    UNKNOWN = -1
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES[self]


_ERROR_MESSAGES: dict[SensorErrorCode, str] = {
    SensorErrorCode.UNKNOWN: "An unknown error occurred.",
    SensorErrorCode.PERMISSION_DENIED: "Permission denied. Please enable location services.",
    SensorErrorCode.POSITION_UNAVAILABLE: "Location information is unavailable.",
    SensorErrorCode.TIMEOUT: "The request to get user location timed out.",
}


class SensorStatus(enum.StrEnum):
    IDLE = "idle"
    LOCATING = "locating"
    ACTIVE = "active"
    ERROR = "error"
