"""Client configuration for livetrack."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from livetrack._constants import DIRECTIONS_URL
from livetrack.exceptions import LiveTrackConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class MqttProfile:
    """Broker details for the remote-entity insert feed.

    The feed publishes one JSON document per inserted location row.
    """

    host: str = "localhost"
    port: int = 8883
    topic: str = "livetrack/location/inserts"
    client_id: str = ""
    username: str | None = None
    password: str | None = None
    tls: bool = True
    keepalive: int = 120


@dataclasses.dataclass(frozen=True)
class TrackerConfig:
    """Tracking pipeline configuration.

    Every threshold is a tunable rather than a fixed constant; the defaults
    are the values the pipeline was tuned with on phones in city traffic.
    Distances are metres, speeds metres per second, durations seconds and
    angles degrees.

    Parameters
    ----------
    jitter_threshold : float
        Fixes closer than this to the last filtered position are noise.
    slow_speed, fast_speed : float
        Speed band edges for the adaptive blend factor.
    slow_alpha, default_alpha, fast_alpha : float
        Blend factor (weight of the new fix) per speed band. Must be
        non-decreasing with speed.
    heading_buffer_size : int
        Capacity of the circular-mean heading buffer.
    course_min_speed : float
        Minimum speed at which the reported course beats the compass.
    animation_duration : float
        Marker glide duration between two targets.
    frame_interval : float
        Interval between animation frames.
    origin_epsilon, destination_epsilon : float
        Minimum displacement before a new route origin/destination commits.
    destination_debounce : float
        Quiet period after a remote update before the destination commits.
    min_route_interval : float
        Minimum spacing between two route requests.
    pan_threshold : float
        Deadzone radius before the camera follows the marker.
    rotation_epsilon : float
        Deadzone before the camera bearing follows the heading.
    recenter_zoom : int
        Zoom level applied by a manual recenter.
    fix_timeout : float
        Seconds without a fix before the sensor reports a timeout.
    announce_interval : float
        Minimum spacing between repeated guidance announcements.
    urgent_distance, approach_min_distance, approach_max_distance : float
        Step distance bands that allow re-announcing the same instruction.
    arrival_distance, arrival_reset_distance : float
        Arrival announcement trigger and re-arm distances.
    directions_url : str
        Directions-style JSON routing endpoint.
    directions_api_key : str or None
        Key appended to routing requests.
    travel_mode : str
        Routing travel mode.
    request_timeout : float
        Total timeout for one HTTP request.
    locations_rest_url : str or None
        PostgREST base URL for the seed fetch of the latest remote row.
    locations_api_key : str or None
        API key sent as ``apikey`` and bearer token to the REST endpoint.
    locations_table : str
        Table holding remote location rows.
    mqtt_enabled : bool
        Subscribe to the remote insert feed over MQTT.
    mqtt : MqttProfile
        Broker details.
    """

    jitter_threshold: float = 1.0
    slow_speed: float = 1.0
    fast_speed: float = 10.0
    slow_alpha: float = 0.2
    default_alpha: float = 0.5
    fast_alpha: float = 0.8
    heading_buffer_size: int = 5
    course_min_speed: float = 1.0
    animation_duration: float = 0.8
    frame_interval: float = 1 / 60
    origin_epsilon: float = 20.0
    destination_epsilon: float = 10.0
    destination_debounce: float = 3.0
    min_route_interval: float = 10.0
    pan_threshold: float = 5.0
    rotation_epsilon: float = 1.0
    recenter_zoom: int = 19
    fix_timeout: float = 5.0
    announce_interval: float = 10.0
    urgent_distance: float = 50.0
    approach_min_distance: float = 150.0
    approach_max_distance: float = 200.0
    arrival_distance: float = 50.0
    arrival_reset_distance: float = 100.0
    directions_url: str = DIRECTIONS_URL
    directions_api_key: str | None = None
    travel_mode: str = "driving"
    request_timeout: float = 10.0
    locations_rest_url: str | None = None
    locations_api_key: str | None = None
    locations_table: str = "location"
    mqtt_enabled: bool = False
    mqtt: MqttProfile = dataclasses.field(default_factory=MqttProfile)

    def __post_init__(self) -> None:
        if not 0.0 <= self.slow_alpha <= self.default_alpha <= self.fast_alpha <= 1.0:
            raise LiveTrackConfigError(
                "blend factors must satisfy 0 <= slow_alpha <= default_alpha <= fast_alpha <= 1"
            )
        if self.slow_speed > self.fast_speed:
            raise LiveTrackConfigError("slow_speed must not exceed fast_speed")
        if self.heading_buffer_size < 1:
            raise LiveTrackConfigError("heading_buffer_size must be at least 1")
        if self.animation_duration <= 0 or self.frame_interval <= 0:
            raise LiveTrackConfigError("animation_duration and frame_interval must be positive")
        for name in (
            "jitter_threshold",
            "origin_epsilon",
            "destination_epsilon",
            "destination_debounce",
            "min_route_interval",
            "pan_threshold",
            "rotation_epsilon",
            "fix_timeout",
        ):
            if getattr(self, name) < 0:
                raise LiveTrackConfigError(f"{name} must not be negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackerConfig:
        """Create configuration from environment variables.

        Reads optional ``LIVETRACK_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        TrackerConfig
            Populated configuration.
        """
        env = os.environ

        mqtt_kwargs: dict[str, Any] = {}
        _ENV_MQTT_MAP = {
            "LIVETRACK_MQTT_HOST": "host",
            "LIVETRACK_MQTT_TOPIC": "topic",
            "LIVETRACK_MQTT_CLIENT_ID": "client_id",
            "LIVETRACK_MQTT_USERNAME": "username",
            "LIVETRACK_MQTT_PASSWORD": "password",
        }
        for env_key, field_name in _ENV_MQTT_MAP.items():
            val = env.get(env_key)
            if val is not None:
                mqtt_kwargs[field_name] = val
        port_env = env.get("LIVETRACK_MQTT_PORT")
        if port_env is not None:
            mqtt_kwargs["port"] = int(port_env)
        keepalive_env = env.get("LIVETRACK_MQTT_KEEPALIVE")
        if keepalive_env is not None:
            mqtt_kwargs["keepalive"] = int(keepalive_env)
        tls_env = env.get("LIVETRACK_MQTT_TLS")
        if tls_env is not None:
            mqtt_kwargs["tls"] = _env_bool(tls_env, True)

        # Allow overriding broker fields via a nested dict
        mqtt_overrides = overrides.pop("mqtt", None)
        if isinstance(mqtt_overrides, dict):
            mqtt_kwargs.update(mqtt_overrides)
        elif isinstance(mqtt_overrides, MqttProfile):
            mqtt_kwargs = dataclasses.asdict(mqtt_overrides)

        config_kwargs: dict[str, Any] = {"mqtt": MqttProfile(**mqtt_kwargs)}

        _ENV_STR_MAP = {
            "LIVETRACK_DIRECTIONS_URL": "directions_url",
            "LIVETRACK_DIRECTIONS_API_KEY": "directions_api_key",
            "LIVETRACK_TRAVEL_MODE": "travel_mode",
            "LIVETRACK_LOCATIONS_REST_URL": "locations_rest_url",
            "LIVETRACK_LOCATIONS_API_KEY": "locations_api_key",
            "LIVETRACK_LOCATIONS_TABLE": "locations_table",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # Numeric tunables, e.g. LIVETRACK_ORIGIN_EPSILON=50
        for field in dataclasses.fields(cls):
            if field.name in overrides or field.type not in ("float", "int"):
                continue
            raw = env.get(f"LIVETRACK_{field.name.upper()}")
            if raw is None:
                continue
            try:
                config_kwargs[field.name] = int(raw) if field.type == "int" else float(raw)
            except ValueError as exc:
                raise LiveTrackConfigError(f"LIVETRACK_{field.name.upper()} is not numeric: {raw!r}") from exc

        if "mqtt_enabled" not in overrides:
            config_kwargs["mqtt_enabled"] = _env_bool(env.get("LIVETRACK_MQTT_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
