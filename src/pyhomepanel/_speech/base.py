"""Speech service protocol."""

from __future__ import annotations

from typing import Protocol

from pyhomepanel.models.speech import SpeechResult


class SpeechService(Protocol):
    """One-shot speech transcription.

    ``recognize`` captures one utterance and resolves exactly once. Failing
    to even start listening is signalled by raising
    :class:`~pyhomepanel.exceptions.SpeechError`; everything that happens
    after listening started is reported through the returned result.
    """

    async def recognize(self) -> SpeechResult:
        ...
