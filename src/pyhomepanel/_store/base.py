"""Store protocol and subscriber fan-out shared by every backend."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from pyhomepanel.models.device import Device
from pyhomepanel.state.events import StoreNotification

_logger = logging.getLogger(__name__)

NotificationCallback = Callable[[StoreNotification], None]


class DeviceStore(Protocol):
    """Structural interface of a remote device-state store.

    ``set`` returns once the backend has handed the write off; the new value
    only becomes visible to the panel when the store echoes it back through
    a subscription notification.
    """

    async def start(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def get(self) -> StoreNotification:
        ...

    async def set(self, device: Device, value: str) -> None:
        ...

    def subscribe(self, callback: NotificationCallback) -> Callable[[], None]:
        ...


class SubscriberSet:
    """Ordered notification callbacks.

    A failing callback is logged and skipped; it never stops delivery to the
    remaining subscribers or breaks the backend's receive loop.
    """

    def __init__(self) -> None:
        self._callbacks: list[NotificationCallback] = []

    def __len__(self) -> int:
        return len(self._callbacks)

    def add(self, callback: NotificationCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _unsubscribe

    def dispatch(self, notification: StoreNotification) -> None:
        for callback in list(self._callbacks):
            try:
                callback(notification)
            except Exception:
                _logger.debug("Store subscriber failed", exc_info=True)
