"""Custom exception hierarchy for livetrack."""

from __future__ import annotations

from livetrack.models.sensor import SensorErrorCode


class LiveTrackError(Exception):
    """Base exception for all livetrack errors."""


class LiveTrackConfigError(LiveTrackError):
    """Invalid or missing configuration."""


class LiveTrackTransportError(LiveTrackError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class RoutingError(LiveTrackError):
    """Routing service answered with a non-OK status or an unusable route."""

    def __init__(self, message: str, *, status: str = "") -> None:
        self.status = status
        super().__init__(message)


class SensorError(LiveTrackError):
    """Location sensing failed.

    Sensor failures are never fatal to a session; the code is surfaced as
    status while the last filtered position is kept.
    """

    def __init__(self, message: str, *, code: SensorErrorCode = SensorErrorCode.UNKNOWN) -> None:
        self.code = code
        super().__init__(message)


class PayloadError(LiveTrackError):
    """Inbound payload is missing required fields or is not parseable."""
