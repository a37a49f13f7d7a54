"""pyhomepanel - Async smart-home control panel for a realtime device store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyhomepanel")
except PackageNotFoundError:
    __version__ = "0+local"
from pyhomepanel._speech import RecognizerSpeechService, SpeechService
from pyhomepanel._store import DeviceStore, FirebaseStore, MemoryStore, MqttStore, build_store
from pyhomepanel.config import PanelConfig, SpeechSettings
from pyhomepanel.exceptions import (
    PanelConfigError,
    PanelError,
    SpeechError,
    SpeechUnavailableError,
    StoreError,
    StoreTransportError,
    StoreWriteError,
)
from pyhomepanel.interpreter import COMMAND_RULES, interpret
from pyhomepanel.models import Device, DeviceCommand, SpeechResult, SpeechStatus, toggle_value
from pyhomepanel.panel import DevicePanel
from pyhomepanel.state.events import StoreNotification, StoreSource
from pyhomepanel.state.snapshot import DeviceSnapshot

__all__ = [
    "__version__",
    "COMMAND_RULES",
    "Device",
    "DeviceCommand",
    "DevicePanel",
    "DeviceSnapshot",
    "DeviceStore",
    "FirebaseStore",
    "MemoryStore",
    "MqttStore",
    "PanelConfig",
    "PanelConfigError",
    "PanelError",
    "RecognizerSpeechService",
    "SpeechError",
    "SpeechResult",
    "SpeechService",
    "SpeechSettings",
    "SpeechStatus",
    "SpeechUnavailableError",
    "StoreError",
    "StoreNotification",
    "StoreSource",
    "StoreTransportError",
    "StoreWriteError",
    "build_store",
    "interpret",
    "toggle_value",
]
