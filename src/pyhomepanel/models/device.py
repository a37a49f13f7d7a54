"""Device identities, state domains and write commands."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, NamedTuple

from pydantic import model_validator

from pyhomepanel.models._base import PanelBaseModel


class SwitchValues(NamedTuple):
    """State values written for each switch position."""

    checked: str
    unchecked: str


class Device(StrEnum):
    """The fixed set of devices on the panel, keyed by their store name."""

    DOOR = "door"
    LIGHT = "light"
    WINDOW = "window"

    @classmethod
    def _missing_(cls, value: object) -> Device | None:
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def switch_values(self) -> SwitchValues:
        return _SWITCH_VALUES[self]

    @property
    def domain(self) -> tuple[str, str]:
        """Closed set of state values the device accepts."""
        values = _SWITCH_VALUES[self]
        return values.checked, values.unchecked

    @property
    def label(self) -> str:
        return self.value.capitalize()


_SWITCH_VALUES: dict[Device, SwitchValues] = {
    Device.DOOR: SwitchValues(checked="open", unchecked="closed"),
    Device.LIGHT: SwitchValues(checked="on", unchecked="off"),
    Device.WINDOW: SwitchValues(checked="open", unchecked="closed"),
}


def toggle_value(device: Device, checked: bool) -> str:
    """Return the state written when *device*'s switch is flipped to *checked*."""
    values = device.switch_values
    return values.checked if checked else values.unchecked


def is_checked(device: Device, state: str) -> bool:
    """Whether *state* puts *device*'s switch in the checked position."""
    return state == device.switch_values.checked


class DeviceCommand(PanelBaseModel):
    """A single device-state write.

    Construction fails for values outside the device's domain, so the
    ``"Unknown"`` loading sentinel can never be written back to the store.
    """

    device: Device
    state: str

    @model_validator(mode="after")
    def _check_domain(self) -> DeviceCommand:
        if self.state not in self.device.domain:
            raise ValueError(
                f"{self.state!r} is not a valid state for {self.device.value}; expected one of {self.device.domain}"
            )
        return self

    @classmethod
    def from_toggle(cls, device: Device, checked: bool) -> DeviceCommand:
        return cls(device=device, state=toggle_value(device, checked))

    def as_patch(self) -> dict[str, Any]:
        return {self.device.value: self.state}
