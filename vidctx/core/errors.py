"""Exception taxonomy for the capture-to-context pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .media.runner import ProcessResult


class ToolError(RuntimeError):
    """Base class for failures running an external tool."""


class ToolUnavailable(ToolError):
    """Raised when the requested executable cannot be found."""


class ToolFailed(ToolError):
    """Raised when an external tool exits non-zero or times out."""

    def __init__(self, message: str, result: "ProcessResult | None" = None) -> None:
        super().__init__(message)
        self.result = result


class PipelineError(RuntimeError):
    """Base class for pipeline stage errors."""


class SanitizationFailed(PipelineError):
    """The uploaded recording could not be re-muxed; nothing downstream can run."""


class FrameExtractionFailed(PipelineError):
    """No usable visual evidence could be extracted from the recording."""


class PipelineCancelled(PipelineError):
    """The host asked the pipeline to stop."""


class RecoverableStageError(PipelineError):
    """A stage failure that degrades to a sentinel transcript."""

    sentinel = "[Audio unavailable]"

    def __init__(self, message: str, sentinel: str | None = None) -> None:
        super().__init__(message)
        if sentinel is not None:
            self.sentinel = sentinel


class AudioUnavailable(RecoverableStageError):
    sentinel = "[No audio detected in recording]"


class AudioSilent(RecoverableStageError):
    sentinel = "[Audio is silent - no sound detected]"


class TranscriptionFailed(RecoverableStageError):
    sentinel = "[Audio transcription failed - API unavailable]"


class TranscriptionError(RuntimeError):
    """A single call to the speech service failed."""


__all__ = [
    "AudioSilent",
    "AudioUnavailable",
    "FrameExtractionFailed",
    "PipelineCancelled",
    "PipelineError",
    "RecoverableStageError",
    "SanitizationFailed",
    "ToolError",
    "ToolFailed",
    "ToolUnavailable",
    "TranscriptionError",
    "TranscriptionFailed",
]
