"""MQTT subscription to the remote-entity insert feed."""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, cast

import paho.mqtt.client as mqtt

from livetrack.config import MqttProfile
from livetrack.exceptions import PayloadError


@dataclass(frozen=True)
class InsertMessage:
    """Decoded insert event as received from the broker."""

    topic: str
    payload: dict[str, Any]


class RemoteFeed(Protocol):
    """Push subscription delivering remote location inserts in arrival order."""

    def start(self, on_insert: Callable[[dict[str, Any]], None]) -> None:
        ...

    def stop(self) -> None:
        ...


def decode_insert_payload(payload: bytes) -> dict[str, Any]:
    """Parse MQTT payload bytes into a JSON object."""
    try:
        parsed = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PayloadError("MQTT payload is not JSON") from exc
    if not isinstance(parsed, dict):
        raise PayloadError("MQTT payload is not a JSON object")
    return parsed


def _client_id(profile: MqttProfile) -> str:
    return profile.client_id or f"livetrack_{secrets.token_hex(6)}"


class MqttLocationFeed:
    """Threaded paho-mqtt runtime that hands insert payloads to an asyncio loop.

    paho runs its network loop on its own thread; every decoded message is
    forwarded with ``loop.call_soon_threadsafe`` so that all pipeline state
    is only ever touched from the loop thread.
    """

    def __init__(
        self,
        profile: MqttProfile,
        *,
        loop: asyncio.AbstractEventLoop,
        logger: logging.Logger | None = None,
    ) -> None:
        self._profile = profile
        self._loop = loop
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._on_insert: Callable[[dict[str, Any]], None] | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def start(self, on_insert: Callable[[dict[str, Any]], None]) -> None:
        """Connect and subscribe; *on_insert* runs on the event loop."""
        self.stop()
        profile = self._profile
        self._on_insert = on_insert
        client_id = _client_id(profile)
        self._logger.debug(
            "MQTT feed start requested host=%s port=%s topic=%s client_id=%s",
            profile.host,
            profile.port,
            profile.topic,
            client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if profile.username:
            client.username_pw_set(profile.username, profile.password)
        if profile.tls:
            client.tls_set()

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected, subscribing topic=%s", profile.topic)
            c.subscribe(profile.topic, qos=1)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                payload = decode_insert_payload(msg.payload)
            except PayloadError:
                self._logger.warning("Dropping undecodable MQTT payload on %s", msg.topic, exc_info=True)
                return
            self._loop.call_soon_threadsafe(self._dispatch, InsertMessage(topic=msg.topic, payload=payload))

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(profile.host, profile.port, keepalive=profile.keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def _dispatch(self, message: InsertMessage) -> None:
        # Runs on the loop; a message queued before stop() is dropped here.
        if not self._running or self._on_insert is None:
            return
        self._on_insert(message.payload)

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
