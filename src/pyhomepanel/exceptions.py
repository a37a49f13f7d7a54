"""Custom exception hierarchy for pyhomepanel."""

from __future__ import annotations


class PanelError(Exception):
    """Base exception for all pyhomepanel errors."""


class PanelConfigError(PanelError):
    """Invalid or missing configuration."""


class StoreError(PanelError):
    """Device state store failure."""


class StoreTransportError(StoreError):
    """HTTP-level failure talking to the store (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        path: str = "",
    ) -> None:
        self.status_code = status_code
        self.path = path
        super().__init__(message)


class StoreWriteError(StoreError):
    """A device write was not accepted by the store.

    Raised by backends that can detect the rejection (e.g. a broker that
    refuses the publish).  The panel absorbs it and surfaces a transient
    status message instead of propagating it to the UI loop.
    """

    def __init__(self, message: str, *, device: str = "") -> None:
        self.device = device
        super().__init__(message)


class SpeechError(PanelError):
    """Speech transcription failure."""


class SpeechUnavailableError(SpeechError):
    """The speech service could not be launched (no microphone, missing backend)."""
