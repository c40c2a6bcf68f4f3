"""OpenAI powered transcription service."""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Any, Optional

from ...config import get_settings
from ...core.errors import TranscriptionError
from ...logging import get_logger
from .base import NO_SPEECH, TRANSCRIPTION_PROMPT, TranscriptionService

LOGGER = get_logger(__name__)


class OpenAITranscriptionService(TranscriptionService):
    """Sends the prompt and base64 WAV to an audio-capable chat model."""

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None) -> None:
        settings = get_settings()
        self.model = model or settings.openai_transcription_model
        self.prompt = TRANSCRIPTION_PROMPT
        try:
            from openai import OpenAI, OpenAIError  # type: ignore
        except ImportError as exc:  # pragma: no cover - runtime dependency guard
            raise RuntimeError("openai package is required for OpenAITranscriptionService") from exc
        client_kwargs = {}
        key = api_key or settings.openai_api_key
        if key:
            client_kwargs["api_key"] = key

        try:
            self.client = OpenAI(**client_kwargs)
            self._openai_error_cls = OpenAIError
        except OpenAIError as exc:
            message = str(exc)
            if "api_key" in message.lower():
                raise RuntimeError(
                    "OpenAI API key not configured. Set the OPENAI_API_KEY environment variable "
                    "or VIDCTX_OPENAI_API_KEY before starting a capture."
                ) from exc
            raise RuntimeError(f"Failed to initialise OpenAI transcription client: {message}") from exc

    def transcribe(self, audio_path: Path) -> str:
        LOGGER.info("Requesting OpenAI transcription for %s", Path(audio_path).name)
        encoded = base64.b64encode(Path(audio_path).read_bytes()).decode("ascii")
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                modalities=["text"],
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": self.prompt},
                            {"type": "input_audio", "input_audio": {"data": encoded, "format": "wav"}},
                        ],
                    }
                ],
            )
        except self._openai_error_cls as exc:
            raise TranscriptionError(f"OpenAI transcription request failed: {exc}") from exc

        text = _message_text(completion).strip()
        return text or NO_SPEECH


def _message_text(completion: Any) -> str:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return str(getattr(message, "content", None) or "")


__all__ = ["OpenAITranscriptionService"]
