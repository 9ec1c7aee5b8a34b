"""Seed fetch of the latest remote location row.

PostgREST-style endpoint::

    GET {rest_url}/{table}?select=*&order=created_at.desc&limit=1
"""

from __future__ import annotations

import logging

from livetrack._transport import Transport
from livetrack.config import TrackerConfig
from livetrack.exceptions import LiveTrackConfigError, PayloadError
from livetrack.ingestion.payloads import parse_remote_insert
from livetrack.models.remote import RemoteLocation

_logger = logging.getLogger(__name__)


def build_latest_request(config: TrackerConfig) -> tuple[str, dict[str, str], dict[str, str]]:
    """Return ``(url, params, headers)`` for the latest-row query."""
    if not config.locations_rest_url:
        raise LiveTrackConfigError("locations_rest_url is not configured")
    url = f"{config.locations_rest_url.rstrip('/')}/{config.locations_table}"
    params = {"select": "*", "order": "created_at.desc", "limit": "1"}
    headers: dict[str, str] = {}
    if config.locations_api_key:
        headers["apikey"] = config.locations_api_key
        headers["authorization"] = f"Bearer {config.locations_api_key}"
    return url, params, headers


async def fetch_latest_location(config: TrackerConfig, transport: Transport) -> RemoteLocation | None:
    """Return the most recent remote row, or ``None`` when there is none or it is unusable."""
    url, params, headers = build_latest_request(config)
    rows = await transport.get_json(url, params=params, headers=headers)
    if not isinstance(rows, list) or not rows:
        _logger.debug("No remote location rows yet")
        return None
    try:
        return parse_remote_insert(rows[0])
    except PayloadError:
        _logger.warning("Latest remote location row is malformed", exc_info=True)
        return None
