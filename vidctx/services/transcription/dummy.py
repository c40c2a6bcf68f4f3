"""Dummy transcription service for testing or offline usage."""

from __future__ import annotations

from pathlib import Path

from .base import TranscriptionService


class DummyTranscriptionService(TranscriptionService):
    def __init__(self, text: str = "[00:00] Dummy transcript. Replace with a real transcription backend.") -> None:
        self.text = text
        self.calls = 0

    def transcribe(self, audio_path: Path) -> str:
        self.calls += 1
        return self.text


__all__ = ["DummyTranscriptionService"]
