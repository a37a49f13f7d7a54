"""MQTT device store.

Each device lives on a retained topic ``<prefix>/<device>`` holding its
state as a UTF-8 string. Subscribing to ``<prefix>/+`` replays the retained
values on connect and then every change, which gives the same
get/set/subscribe shape as a realtime database.
"""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
from collections.abc import Callable
from typing import Any, cast

import paho.mqtt.client as mqtt

from pyhomepanel._redact import redact_for_log
from pyhomepanel._store.base import NotificationCallback, SubscriberSet
from pyhomepanel.config import PanelConfig
from pyhomepanel.exceptions import StoreError, StoreWriteError
from pyhomepanel.models.device import Device
from pyhomepanel.state.events import StoreNotification, StoreSource

_logger = logging.getLogger(__name__)


def decode_state_payload(payload: bytes) -> str | None:
    """Decode a retained device payload.

    An empty payload (cleared retained message) means no value. A JSON
    string literal is unwrapped so values written by JSON-speaking clients
    are accepted as well.
    """
    try:
        text = payload.decode("utf-8").strip()
    except UnicodeDecodeError:
        return None
    if not text:
        return None
    if text.startswith('"'):
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            return text
        return decoded if isinstance(decoded, str) else None
    return text


class MqttStore:
    """Threaded paho-mqtt runtime that emits device notifications onto an asyncio loop."""

    def __init__(
        self,
        config: PanelConfig,
        *,
        qos: int = 1,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._prefix = config.mqtt_topic_prefix.strip("/")
        self._qos = qos
        self._logger = logger or _logger
        self._subscribers = SubscriberSet()
        self._latest: dict[str, Any] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the MQTT network loop is running."""
        return self._running

    @property
    def subscription(self) -> str:
        return f"{self._prefix}/+"

    def topic_for(self, device: Device) -> str:
        return f"{self._prefix}/{device.value}"

    def _build_client(self) -> mqtt.Client:
        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=f"pyhomepanel-{secrets.token_hex(4)}",
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if self._config.mqtt_username:
            client.username_pw_set(self._config.mqtt_username, self._config.mqtt_password)
        if self._config.mqtt_tls:
            client.tls_set()
        return client

    async def start(self) -> None:
        """Connect and subscribe to the device topics."""
        await self.close()
        self._loop = asyncio.get_running_loop()
        client = self._build_client()
        subscription = self.subscription

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
            self._logger.debug("MQTT connected, subscribing topic=%s", subscription)
            c.subscribe(subscription, qos=self._qos)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                self.handle_message(msg.topic, msg.payload)
            except Exception:
                self._logger.debug("MQTT payload parse failure", exc_info=True)

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

        self._logger.debug(
            "MQTT store start host=%s port=%s topic=%s",
            self._config.mqtt_host,
            self._config.mqtt_port,
            subscription,
        )
        client.connect_async(self._config.mqtt_host, self._config.mqtt_port, keepalive=self._config.mqtt_keepalive)
        client.loop_start()
        self._client = client
        self._running = True

    async def close(self) -> None:
        """Stop and disconnect the MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    def handle_message(self, topic: str, payload: bytes) -> None:
        """Turn one device message into a notification on the event loop.

        Called from paho's network thread.
        """
        prefix, _, name = topic.rpartition("/")
        if prefix != self._prefix or not name:
            self._logger.debug("Ignoring message on topic %s", topic)
            return
        self._logger.debug("MQTT message topic=%s payload=%r", topic, redact_for_log(payload))
        notification = StoreNotification(
            source=StoreSource.MQTT,
            data={name: decode_state_payload(payload)},
            path=topic,
        )
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._deliver, notification)

    def _deliver(self, notification: StoreNotification) -> None:
        self._latest.update(notification.data)
        self._subscribers.dispatch(notification)

    async def get(self) -> StoreNotification:
        """Latest retained values seen since connecting."""
        return StoreNotification(source=StoreSource.MQTT, data=dict(self._latest), path=self.subscription)

    async def set(self, device: Device, value: str) -> None:
        """Publish *value* as the device's retained state."""
        client = self._client
        if client is None:
            raise StoreError("Store not started. Call 'await store.start()' first")
        topic = self.topic_for(device)
        info = client.publish(topic, value, qos=self._qos, retain=True)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise StoreWriteError(
                f"Publish to {topic} failed: {mqtt.error_string(info.rc)}",
                device=device.value,
            )
        self._logger.debug("MQTT publish topic=%s value=%s mid=%s", topic, value, info.mid)

    def subscribe(self, callback: NotificationCallback) -> Callable[[], None]:
        return self._subscribers.add(callback)
