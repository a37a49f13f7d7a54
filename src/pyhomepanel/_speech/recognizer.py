"""Speech transcription through the ``speech_recognition`` library.

Audio is captured from the default microphone and sent to the Google Web
Speech API. The blocking capture/recognize sequence runs on a worker thread
so the event loop keeps serving store notifications meanwhile.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import speech_recognition as sr

from pyhomepanel.config import SpeechSettings
from pyhomepanel.exceptions import SpeechUnavailableError
from pyhomepanel.models.speech import SpeechResult

_logger = logging.getLogger(__name__)


def extract_transcripts(response: Any) -> list[str]:
    """Pull the ordered transcript candidates out of a ``show_all`` response."""
    if not isinstance(response, dict):
        return []
    alternatives = response.get("alternative")
    if not isinstance(alternatives, list):
        return []
    transcripts: list[str] = []
    for alternative in alternatives:
        if not isinstance(alternative, dict):
            continue
        text = alternative.get("transcript")
        if isinstance(text, str) and text.strip():
            transcripts.append(text.strip())
    return transcripts


def request_microphone_access() -> bool:
    """Probe for an audio input device.

    Called once at startup; the result is only logged; recognition is
    attempted regardless.
    """
    try:
        names = sr.Microphone.list_microphone_names()
    except (AttributeError, OSError) as exc:
        _logger.warning("Microphone access unavailable: %s", exc)
        return False
    if not names:
        _logger.warning("No audio input devices found")
        return False
    _logger.debug("Audio input devices: %s", names)
    return True


class RecognizerSpeechService:
    """Speech service backed by ``speech_recognition.Recognizer``."""

    def __init__(
        self,
        settings: SpeechSettings | None = None,
        *,
        recognizer: sr.Recognizer | None = None,
        microphone_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._settings = settings or SpeechSettings()
        self._recognizer = recognizer or sr.Recognizer()
        self._microphone_factory = microphone_factory or sr.Microphone

    async def recognize(self) -> SpeechResult:
        try:
            microphone = self._microphone_factory()
        except (AttributeError, OSError) as exc:
            # sr.Microphone raises AttributeError when PyAudio is missing.
            raise SpeechUnavailableError(f"Microphone unavailable: {exc}") from exc
        return await asyncio.to_thread(self._recognize_blocking, microphone)

    def _recognize_blocking(self, microphone: Any) -> SpeechResult:
        settings = self._settings
        try:
            with microphone as source:
                _logger.debug("Listening (%s): %s", settings.language, settings.prompt)
                if settings.ambient_adjust_seconds > 0:
                    self._recognizer.adjust_for_ambient_noise(source, duration=settings.ambient_adjust_seconds)
                audio = self._recognizer.listen(
                    source,
                    timeout=settings.timeout,
                    phrase_time_limit=settings.phrase_time_limit,
                )
        except sr.WaitTimeoutError:
            return SpeechResult.cancelled("No speech detected")
        except OSError as exc:
            raise SpeechUnavailableError(f"Microphone unavailable: {exc}") from exc

        try:
            response = self._recognizer.recognize_google(audio, language=settings.language, show_all=True)
        except sr.UnknownValueError:
            return SpeechResult.recognized([])
        except sr.RequestError as exc:
            _logger.debug("Speech service request failed", exc_info=True)
            return SpeechResult.error(str(exc))

        transcripts = extract_transcripts(response)
        _logger.debug("Speech candidates: %s", transcripts)
        return SpeechResult.recognized(transcripts)
