"""Per-device state snapshot held by the panel.

Merge policy for a notification:

- a device key missing from the notification keeps its current state
  (``"Unknown"`` until the first value arrives);
- a key present with a string from the device's domain sets that state;
- a key present with anything else (``None``, a number, an unknown word)
  resets the device to ``"Unknown"``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any

from pyhomepanel._constants import UNKNOWN_STATE
from pyhomepanel.models.device import Device
from pyhomepanel.state.events import StoreNotification

_logger = logging.getLogger(__name__)

# Store keys match device names exactly.
_DEVICES_BY_KEY: dict[str, Device] = {device.value: device for device in Device}


def coerce_state(device: Device, value: Any) -> str:
    """Map a raw stored value to a domain state or ``"Unknown"``."""
    if not isinstance(value, str):
        return UNKNOWN_STATE
    if value not in device.domain:
        _logger.debug("Ignoring out-of-domain value for %s: %r", device.value, value)
        return UNKNOWN_STATE
    return value


class DeviceSnapshot(Mapping[Device, str]):
    """Last-known state of every device."""

    def __init__(self) -> None:
        self._states: dict[Device, str] = {device: UNKNOWN_STATE for device in Device}
        self._loaded = False

    def __getitem__(self, device: Device) -> str:
        return self._states[device]

    def __iter__(self) -> Iterator[Device]:
        return iter(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def __repr__(self) -> str:
        states = ", ".join(f"{device.value}={state}" for device, state in self._states.items())
        return f"DeviceSnapshot({states})"

    @property
    def loaded(self) -> bool:
        """Whether at least one store notification has been applied."""
        return self._loaded

    def apply(self, notification: StoreNotification) -> set[Device]:
        """Merge *notification* and return the devices whose state changed."""
        self._loaded = True
        changed: set[Device] = set()
        for key, value in notification.data.items():
            device = _DEVICES_BY_KEY.get(key)
            if device is None:
                _logger.debug("Ignoring notification key %r from %s", key, notification.source)
                continue
            state = coerce_state(device, value)
            if self._states[device] != state:
                self._states[device] = state
                changed.add(device)
        return changed

    def as_dict(self) -> dict[str, str]:
        return {device.value: state for device, state in self._states.items()}
