"""In-memory device store.

Keeps the same round trip as a remote store: ``set`` records the value and
schedules the change notification on the event loop instead of delivering
it inline.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from pyhomepanel._store.base import NotificationCallback, SubscriberSet
from pyhomepanel.exceptions import StoreWriteError
from pyhomepanel.models.device import Device
from pyhomepanel.state.events import StoreNotification, StoreSource

_logger = logging.getLogger(__name__)


class MemoryStore:
    """Device store backed by a dict on the running event loop."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})
        self._subscribers = SubscriberSet()
        self.fail_writes = False
        self.writes: list[tuple[Device, str]] = []

    @property
    def data(self) -> dict[str, Any]:
        return dict(self._data)

    def _record(self) -> dict[str, Any]:
        return {device.value: self._data.get(device.value) for device in Device}

    async def start(self) -> None:
        """Deliver the current record to subscribers, like a fresh value listener."""
        loop = asyncio.get_running_loop()
        loop.call_soon(self._subscribers.dispatch, StoreNotification(source=StoreSource.MEMORY, data=self._record()))

    async def close(self) -> None:
        return None

    async def get(self) -> StoreNotification:
        return StoreNotification(source=StoreSource.MEMORY, data=self._record())

    async def set(self, device: Device, value: str) -> None:
        if self.fail_writes:
            raise StoreWriteError(f"Write to {device.value} rejected", device=device.value)
        self.writes.append((device, value))
        self._data[device.value] = value
        _logger.debug("Memory store set %s=%s", device.value, value)
        notification = StoreNotification(
            source=StoreSource.MEMORY,
            data={device.value: value},
            path=f"/{device.value}",
        )
        asyncio.get_running_loop().call_soon(self._subscribers.dispatch, notification)

    def push(self, data: Mapping[str, Any]) -> None:
        """Simulate a change made by another writer."""
        self._data.update(data)
        self._subscribers.dispatch(StoreNotification(source=StoreSource.MEMORY, data=dict(data)))

    def subscribe(self, callback: NotificationCallback) -> Callable[[], None]:
        return self._subscribers.add(callback)
