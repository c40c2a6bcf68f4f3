"""Resilient transcription of the validated audio track."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from ...logging import get_logger
from ...services.transcription.base import TranscriptionService
from ..errors import PipelineCancelled, RecoverableStageError, TranscriptionError, TranscriptionFailed
from ..media.audio import AudioPreparer
from .control import PipelineControl

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded attempts with exponential backoff between them."""

    max_attempts: int = 3
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay(self, attempt: int) -> float:
        """Seconds to wait after the zero-based ``attempt`` failed."""

        return self.base_delay * (2 ** attempt)

    def schedule(self) -> List[float]:
        return [self.delay(attempt) for attempt in range(self.max_attempts - 1)]


class Transcriber:
    def __init__(
        self,
        service: TranscriptionService,
        policy: Optional[RetryPolicy] = None,
        sleep: Optional[Callable[[float], None]] = None,
        control: Optional[PipelineControl] = None,
    ) -> None:
        self.service = service
        self.policy = policy or RetryPolicy()
        self.control = control
        self._sleep = sleep or (control.wait if control is not None else time.sleep)

    def run(self, audio_path: Path) -> str:
        """Return the transcript, retrying transient failures, else raise ``TranscriptionFailed``."""

        last_error: Optional[Exception] = None
        for attempt in range(self.policy.max_attempts):
            try:
                return self.service.transcribe(audio_path)
            except PipelineCancelled:
                raise
            except Exception as exc:
                # any service failure counts as a failed attempt
                if not isinstance(exc, TranscriptionError):
                    LOGGER.debug("Unexpected transcription error", exc_info=True)
                last_error = exc
                if attempt + 1 >= self.policy.max_attempts:
                    break
                delay = self.policy.delay(attempt)
                LOGGER.warning(
                    "Transcription attempt %d/%d failed (%s); retrying in %.0fs",
                    attempt + 1,
                    self.policy.max_attempts,
                    exc,
                    delay,
                )
                self._sleep(delay)
                if self.control is not None and self.control.should_stop:
                    raise PipelineCancelled("Cancelled while waiting to retry transcription") from exc

        raise TranscriptionFailed(
            f"Transcription failed after {self.policy.max_attempts} attempts: {last_error}"
        ) from last_error


def transcribe_recording(
    preparer: AudioPreparer,
    transcriber: Transcriber,
    video_path: Path,
    audio_path: Path,
    transcript_path: Path,
) -> str:
    """Produce the transcript file for ``video_path``; recoverable failures become sentinels.

    The temporary audio file never outlives this call.
    """

    try:
        validated = preparer.prepare(video_path, audio_path)
        transcript = transcriber.run(validated)
    except RecoverableStageError as exc:
        LOGGER.warning("%s; writing sentinel transcript", exc)
        transcript = exc.sentinel
    finally:
        Path(audio_path).unlink(missing_ok=True)

    Path(transcript_path).write_text(transcript, encoding="utf-8")
    return transcript


__all__ = ["RetryPolicy", "Transcriber", "transcribe_recording"]
