"""Device store backends."""

from __future__ import annotations

from pyhomepanel._store.base import DeviceStore, NotificationCallback, SubscriberSet
from pyhomepanel._store.firebase import FirebaseStore
from pyhomepanel._store.memory import MemoryStore
from pyhomepanel._store.mqtt import MqttStore
from pyhomepanel.config import STORE_FIREBASE, STORE_MEMORY, STORE_MQTT, PanelConfig
from pyhomepanel.exceptions import PanelConfigError


def build_store(config: PanelConfig) -> DeviceStore:
    """Create the store backend selected by *config*."""
    config.validate()
    if config.store == STORE_FIREBASE:
        return FirebaseStore(config)
    if config.store == STORE_MQTT:
        return MqttStore(config)
    if config.store == STORE_MEMORY:
        return MemoryStore()
    raise PanelConfigError(f"Unknown store {config.store!r}")


__all__ = [
    "DeviceStore",
    "FirebaseStore",
    "MemoryStore",
    "MqttStore",
    "NotificationCallback",
    "SubscriberSet",
    "build_store",
]
