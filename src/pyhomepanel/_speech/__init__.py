"""Speech transcription services."""

from pyhomepanel._speech.base import SpeechService
from pyhomepanel._speech.recognizer import RecognizerSpeechService, extract_transcripts, request_microphone_access

__all__ = [
    "RecognizerSpeechService",
    "SpeechService",
    "extract_transcripts",
    "request_microphone_access",
]
