"""Payload parsing for the three inbound channels.

Each helper either returns a validated model or raises
:class:`~livetrack.exceptions.PayloadError`; the session decides whether
to drop the event.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from livetrack._constants import compass_from_alpha
from livetrack.exceptions import PayloadError
from livetrack.ingestion.normalize import safe_float
from livetrack.models.fix import RawFix
from livetrack.models.remote import RemoteLocation

# Keys an insert envelope may carry the new row under, in lookup order.
_ROW_KEYS = ("record", "new", "data")


def parse_fix(payload: Mapping[str, Any]) -> RawFix:
    """Validate one location-sensor payload."""
    if not isinstance(payload, Mapping):
        raise PayloadError(f"fix payload is not an object: {type(payload).__name__}")
    try:
        return RawFix.model_validate(dict(payload))
    except ValidationError as exc:
        raise PayloadError(f"invalid fix payload: {exc.error_count()} error(s)") from exc


def parse_compass(payload: Mapping[str, Any] | float | int) -> float:
    """Extract a compass heading in degrees from an orientation reading.

    Accepts a bare number, ``heading``/``webkitCompassHeading`` (already a
    compass bearing) or ``alpha`` (counter-clockwise, converted).
    """
    if isinstance(payload, (int, float)) and not isinstance(payload, bool):
        value = safe_float(payload)
        if value is None:
            raise PayloadError("compass reading is not finite")
        return value % 360.0
    if not isinstance(payload, Mapping):
        raise PayloadError(f"compass payload is not an object: {type(payload).__name__}")
    for key in ("heading", "webkitCompassHeading"):
        value = safe_float(payload.get(key))
        if value is not None:
            return value % 360.0
    alpha = safe_float(payload.get("alpha"))
    if alpha is not None:
        return compass_from_alpha(alpha)
    raise PayloadError("compass payload has no heading, webkitCompassHeading or alpha")


def _extract_row(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    for key in _ROW_KEYS:
        nested = payload.get(key)
        if isinstance(nested, Mapping):
            return nested
    return payload


def parse_remote_insert(payload: Mapping[str, Any]) -> RemoteLocation:
    """Validate a remote insert event (``{"record": row}``, ``{"new": row}`` or a bare row)."""
    if not isinstance(payload, Mapping):
        raise PayloadError(f"insert payload is not an object: {type(payload).__name__}")
    event_type = payload.get("type") or payload.get("eventType")
    if isinstance(event_type, str) and event_type.upper() != "INSERT":
        raise PayloadError(f"not an insert event: {event_type}")
    row = _extract_row(payload)
    try:
        return RemoteLocation.model_validate(dict(row))
    except ValidationError as exc:
        raise PayloadError(f"invalid location row: {exc.error_count()} error(s)") from exc
