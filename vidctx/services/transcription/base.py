"""Transcription service abstractions."""

from __future__ import annotations

import abc
from pathlib import Path

TRANSCRIPTION_PROMPT = """Please transcribe this audio recording with timestamps. Format your response as:

[MM:SS] Transcript text here
[MM:SS] Next segment of speech

For example:
[00:03] This login button is broken when I click it
[00:08] The search feature isn't working properly
[00:15] Can you add a dark mode option please

Include timestamps for each distinct topic or issue mentioned. If there is no speech or the audio is silent, respond with '[No speech detected]'."""

NO_SPEECH = "[No speech detected]"


class TranscriptionService(abc.ABC):
    """Convert a WAV file into ``[MM:SS] text`` transcript lines."""

    @abc.abstractmethod
    def transcribe(self, audio_path: Path) -> str:
        """Return the transcript text or raise ``TranscriptionError``."""


__all__ = ["NO_SPEECH", "TRANSCRIPTION_PROMPT", "TranscriptionService"]
