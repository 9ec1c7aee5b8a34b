"""Directions-style routing endpoint.

Request::

    GET {directions_url}?origin=lat,lng&destination=lat,lng&mode=driving&key=...

Only the first leg of the first route is used.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

from livetrack._constants import NAVIGATION_URL
from livetrack._transport import Transport
from livetrack.config import TrackerConfig
from livetrack.exceptions import RoutingError
from livetrack.models.geo import LatLng
from livetrack.models.route import RouteResult, RouteStep

_logger = logging.getLogger(__name__)


def navigation_url(destination: LatLng) -> str:
    """Deep link that opens turn-by-turn navigation to *destination* in a maps app."""
    return f"{NAVIGATION_URL}?{urlencode({'api': '1', 'destination': destination.as_query()})}"


def build_route_params(config: TrackerConfig, origin: LatLng, destination: LatLng) -> dict[str, str]:
    params: dict[str, str] = {
        "origin": origin.as_query(),
        "destination": destination.as_query(),
        "mode": config.travel_mode,
    }
    if config.directions_api_key:
        params["key"] = config.directions_api_key
    return params


def _text_value(block: Any) -> tuple[str | None, Any]:
    if not isinstance(block, dict):
        return None, None
    text = block.get("text")
    return (text if isinstance(text, str) else None), block.get("value")


def parse_route_response(response: Any) -> RouteResult:
    """Map a routing response onto :class:`RouteResult`.

    Raises :class:`RoutingError` for non-OK statuses and responses without
    a leg.
    """
    if not isinstance(response, dict):
        raise RoutingError("Routing response is not an object")
    status = str(response.get("status") or "")
    if status != "OK":
        message = response.get("error_message") or "routing failed"
        raise RoutingError(f"Routing status {status or '<missing>'}: {message}", status=status)

    routes = response.get("routes")
    if not isinstance(routes, list) or not routes or not isinstance(routes[0], dict):
        raise RoutingError("Routing response has no routes", status=status)
    route = routes[0]
    legs = route.get("legs")
    if not isinstance(legs, list) or not legs or not isinstance(legs[0], dict):
        raise RoutingError("Routing response has no legs", status=status)
    leg = legs[0]

    distance_text, distance_value = _text_value(leg.get("distance"))
    duration_text, duration_value = _text_value(leg.get("duration"))

    steps: list[RouteStep] = []
    raw_steps = leg.get("steps")
    if isinstance(raw_steps, list):
        for raw_step in raw_steps:
            if not isinstance(raw_step, dict):
                continue
            step_text, step_value = _text_value(raw_step.get("distance"))
            steps.append(
                RouteStep(
                    instruction=raw_step.get("html_instructions") or raw_step.get("instructions"),
                    distance_text=step_text,
                    distance_m=step_value,
                    raw=raw_step,
                )
            )

    overview = route.get("overview_polyline")
    polyline = overview.get("points") if isinstance(overview, dict) else None

    return RouteResult(
        distance_text=distance_text,
        duration_text=duration_text,
        distance_m=distance_value,
        duration_s=duration_value,
        polyline=polyline,
        steps=steps,
        raw=leg,
    )


class DirectionsRouter:
    """:class:`~livetrack.pipeline.throttle.Router` over a Directions-style JSON API."""

    def __init__(self, config: TrackerConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    async def route(self, origin: LatLng, destination: LatLng) -> RouteResult:
        params = build_route_params(self._config, origin, destination)
        response = await self._transport.get_json(self._config.directions_url, params=params)
        result = parse_route_response(response)
        _logger.debug("Route ready distance=%s duration=%s", result.distance_text, result.duration_text)
        return result
