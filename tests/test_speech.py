from __future__ import annotations

from typing import Any

import pytest
import speech_recognition as sr

from pyhomepanel._speech.recognizer import RecognizerSpeechService, extract_transcripts
from pyhomepanel.config import SpeechSettings
from pyhomepanel.exceptions import SpeechUnavailableError
from pyhomepanel.models.speech import SpeechStatus


class _FakeMicrophone:
    def __enter__(self) -> _FakeMicrophone:
        return self

    def __exit__(self, *exc: Any) -> None:
        return None


class _FakeRecognizer:
    def __init__(
        self,
        response: Any = None,
        *,
        listen_error: Exception | None = None,
        recognize_error: Exception | None = None,
    ) -> None:
        self._response = response
        self._listen_error = listen_error
        self._recognize_error = recognize_error
        self.adjusted: float | None = None
        self.listen_kwargs: dict[str, Any] = {}
        self.language: str | None = None

    def adjust_for_ambient_noise(self, source: Any, duration: float = 1) -> None:
        self.adjusted = duration

    def listen(self, source: Any, timeout: float | None = None, phrase_time_limit: float | None = None) -> str:
        self.listen_kwargs = {"timeout": timeout, "phrase_time_limit": phrase_time_limit}
        if self._listen_error is not None:
            raise self._listen_error
        return "audio"

    def recognize_google(self, audio: Any, language: str = "en-US", show_all: bool = False) -> Any:
        assert show_all is True
        self.language = language
        if self._recognize_error is not None:
            raise self._recognize_error
        return self._response


def _service(recognizer: _FakeRecognizer, settings: SpeechSettings | None = None) -> RecognizerSpeechService:
    return RecognizerSpeechService(
        settings or SpeechSettings(language="en-GB", timeout=3.0, phrase_time_limit=6.0),
        recognizer=recognizer,  # type: ignore[arg-type]
        microphone_factory=_FakeMicrophone,
    )


def test_extract_transcripts_keeps_order() -> None:
    response = {
        "alternative": [
            {"transcript": "light on", "confidence": 0.92},
            {"transcript": "like on"},
            {"confidence": 0.1},
            "garbage",
            {"transcript": "   "},
        ],
        "final": True,
    }
    assert extract_transcripts(response) == ["light on", "like on"]


@pytest.mark.parametrize("response", [[], None, {"final": True}, {"alternative": "x"}])
def test_extract_transcripts_handles_empty_responses(response: Any) -> None:
    assert extract_transcripts(response) == []


@pytest.mark.asyncio
async def test_recognize_returns_candidates() -> None:
    recognizer = _FakeRecognizer({"alternative": [{"transcript": "door open"}, {"transcript": "door opens"}]})

    result = await _service(recognizer).recognize()

    assert result.status == SpeechStatus.RECOGNIZED
    assert result.transcript == "door open"
    assert recognizer.language == "en-GB"
    assert recognizer.listen_kwargs == {"timeout": 3.0, "phrase_time_limit": 6.0}
    assert recognizer.adjusted == 0.5


@pytest.mark.asyncio
async def test_recognize_without_match_has_no_transcript() -> None:
    result = await _service(_FakeRecognizer([])).recognize()
    assert result.status == SpeechStatus.RECOGNIZED
    assert result.transcript is None

    result = await _service(_FakeRecognizer(recognize_error=sr.UnknownValueError())).recognize()
    assert result.status == SpeechStatus.RECOGNIZED
    assert result.transcripts == ()


@pytest.mark.asyncio
async def test_silence_is_cancelled() -> None:
    result = await _service(_FakeRecognizer(listen_error=sr.WaitTimeoutError("timed out"))).recognize()
    assert result.status == SpeechStatus.CANCELLED


@pytest.mark.asyncio
async def test_service_failure_is_error_result() -> None:
    result = await _service(_FakeRecognizer(recognize_error=sr.RequestError("recognition connection failed"))).recognize()
    assert result.status == SpeechStatus.ERROR
    assert result.message == "recognition connection failed"


@pytest.mark.asyncio
async def test_missing_microphone_raises_unavailable() -> None:
    def _no_pyaudio() -> Any:
        raise AttributeError("Could not find PyAudio; check installation")

    service = RecognizerSpeechService(recognizer=_FakeRecognizer(), microphone_factory=_no_pyaudio)  # type: ignore[arg-type]

    with pytest.raises(SpeechUnavailableError):
        await service.recognize()


@pytest.mark.asyncio
async def test_microphone_open_failure_raises_unavailable() -> None:
    recognizer = _FakeRecognizer(listen_error=OSError("Invalid input device"))

    with pytest.raises(SpeechUnavailableError):
        await _service(recognizer).recognize()
