"""Factories for runtime service selection."""

from __future__ import annotations

from typing import Optional

from .transcription.base import TranscriptionService
from .transcription.dummy import DummyTranscriptionService


class ServiceConfigurationError(ValueError):
    """Raised when an unknown backend is requested."""


def _normalise(name: Optional[str]) -> str:
    if not name:
        return "openai"
    return name.strip().lower()


def resolve_transcription_backend(name: Optional[str]) -> TranscriptionService:
    """Build the named backend; the OpenAI backend fails fast without credentials."""

    backend = _normalise(name)
    if backend == "dummy":
        return DummyTranscriptionService()
    if backend == "openai":
        from .transcription.openai_client import OpenAITranscriptionService

        return OpenAITranscriptionService()
    raise ServiceConfigurationError(f"Unknown transcription backend: {name}")


__all__ = ["ServiceConfigurationError", "resolve_transcription_backend"]
