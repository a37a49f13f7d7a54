"""Data models for pyhomepanel."""

from pyhomepanel.models.device import Device, DeviceCommand, SwitchValues, is_checked, toggle_value
from pyhomepanel.models.speech import SpeechResult, SpeechStatus

__all__ = [
    "Device",
    "DeviceCommand",
    "SpeechResult",
    "SpeechStatus",
    "SwitchValues",
    "is_checked",
    "toggle_value",
]
