from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import paho.mqtt.client as mqtt
import pytest

from pyhomepanel._store.mqtt import MqttStore, decode_state_payload
from pyhomepanel.config import PanelConfig
from pyhomepanel.exceptions import StoreError, StoreWriteError
from pyhomepanel.models.device import Device
from pyhomepanel.state.events import StoreNotification, StoreSource


@dataclass
class _PublishInfo:
    rc: int
    mid: int = 1


@dataclass
class _FakeClient:
    rc: int = mqtt.MQTT_ERR_SUCCESS
    published: list[tuple[str, Any, int, bool]] = field(default_factory=list)

    def publish(self, topic: str, payload: Any, qos: int = 0, retain: bool = False) -> _PublishInfo:
        self.published.append((topic, payload, qos, retain))
        return _PublishInfo(rc=self.rc)


def _store() -> MqttStore:
    return MqttStore(PanelConfig(store="mqtt", mqtt_topic_prefix="/home/panel/"))


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        (b"open", "open"),
        (b" on \n", "on"),
        (b'"closed"', "closed"),
        (b"", None),
        (b'"unterminated', '"unterminated'),
        (b"\xff\xfe", None),
    ],
)
def test_decode_state_payload(payload: bytes, expected: str | None) -> None:
    assert decode_state_payload(payload) == expected


def test_topics() -> None:
    store = _store()
    assert store.subscription == "home/panel/+"
    assert store.topic_for(Device.LIGHT) == "home/panel/light"


@pytest.mark.asyncio
async def test_messages_are_delivered_on_the_loop() -> None:
    store = _store()
    store._loop = asyncio.get_running_loop()  # type: ignore[attr-defined]
    received: list[StoreNotification] = []
    store.subscribe(received.append)

    store.handle_message("home/panel/door", b"open")
    store.handle_message("home/other/door", b"closed")
    assert received == []
    await asyncio.sleep(0)

    assert len(received) == 1
    assert received[0].source == StoreSource.MQTT
    assert received[0].data == {"door": "open"}
    assert received[0].path == "home/panel/door"

    latest = await store.get()
    assert latest.data == {"door": "open"}


@pytest.mark.asyncio
async def test_cleared_retained_message_reports_none() -> None:
    store = _store()
    store._loop = asyncio.get_running_loop()  # type: ignore[attr-defined]
    received: list[StoreNotification] = []
    store.subscribe(received.append)

    store.handle_message("home/panel/window", b"")
    await asyncio.sleep(0)

    assert received[0].data == {"window": None}


@pytest.mark.asyncio
async def test_set_requires_start() -> None:
    with pytest.raises(StoreError):
        await _store().set(Device.DOOR, "open")


@pytest.mark.asyncio
async def test_set_publishes_retained_value() -> None:
    store = _store()
    client = _FakeClient()
    store._client = client  # type: ignore[assignment]

    await store.set(Device.WINDOW, "closed")

    assert client.published == [("home/panel/window", "closed", 1, True)]


@pytest.mark.asyncio
async def test_rejected_publish_raises_write_error() -> None:
    store = _store()
    store._client = _FakeClient(rc=mqtt.MQTT_ERR_NO_CONN)  # type: ignore[assignment]

    with pytest.raises(StoreWriteError) as exc_info:
        await store.set(Device.LIGHT, "on")

    assert exc_info.value.device == "light"
