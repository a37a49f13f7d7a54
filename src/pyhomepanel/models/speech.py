"""Speech transcription results."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from pyhomepanel.models._base import PanelBaseModel


class SpeechStatus(StrEnum):
    RECOGNIZED = "recognized"
    CANCELLED = "cancelled"
    ERROR = "error"


class SpeechResult(PanelBaseModel):
    """Outcome of one speech recognition request.

    ``transcripts`` is ordered best-first. Only the first candidate is ever
    used; a ``RECOGNIZED`` result may still carry no transcripts when the
    service heard audio it could not turn into text.
    """

    status: SpeechStatus
    transcripts: tuple[str, ...] = Field(default_factory=tuple)
    message: str | None = None

    @property
    def transcript(self) -> str | None:
        """Best transcript, or ``None`` when there is none."""
        if self.status != SpeechStatus.RECOGNIZED or not self.transcripts:
            return None
        return self.transcripts[0]

    @classmethod
    def recognized(cls, transcripts: list[str] | tuple[str, ...]) -> SpeechResult:
        return cls(status=SpeechStatus.RECOGNIZED, transcripts=tuple(transcripts))

    @classmethod
    def cancelled(cls, message: str | None = None) -> SpeechResult:
        return cls(status=SpeechStatus.CANCELLED, message=message)

    @classmethod
    def error(cls, message: str) -> SpeechResult:
        return cls(status=SpeechStatus.ERROR, message=message)
