"""Pipeline coordinating sanitization, frames, transcription and assembly."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ...config import Settings
from ...data.models import ContextDocument
from ...logging import get_logger
from ...services.transcription.base import TranscriptionService
from ..errors import PipelineCancelled
from ..media.audio import AudioPreparer
from ..media.frames import IntervalTimestamps, TimestampPolicy, extract_frames
from ..media.probe import DEFAULT_DURATION, probe_duration
from ..media.runner import MediaTools, ProcessRunner
from ..media.sanitizer import sanitize_recording
from .assembler import FrameReference, assemble_context
from .control import PipelineControl
from .correlator import correlate, parse_transcript
from .transcriber import RetryPolicy, Transcriber, transcribe_recording

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class SessionPaths:
    """Fixed layout of one session's working directory."""

    root: Path

    @classmethod
    def for_session(cls, base_dir: Path, session_id: str) -> "SessionPaths":
        return cls(root=Path(base_dir) / session_id)

    @property
    def raw(self) -> Path:
        return self.root / "recording.webm"

    @property
    def sanitized(self) -> Path:
        return self.root / "recording-fixed.webm"

    @property
    def frames(self) -> Path:
        return self.root / "frames"

    @property
    def audio(self) -> Path:
        return self.root / "audio.wav"

    @property
    def transcript(self) -> Path:
        return self.root / "transcript.txt"

    def ensure(self) -> "SessionPaths":
        self.frames.mkdir(parents=True, exist_ok=True)
        return self


class ContextPipeline:
    """Runs every stage for one recording, strictly in sequence."""

    def __init__(
        self,
        tools: MediaTools,
        transcription: TranscriptionService,
        *,
        policy: Optional[TimestampPolicy] = None,
        max_frames: int = 6,
        skip_failed_frames: bool = False,
        frame_reference: FrameReference = "inline",
        default_duration: float = DEFAULT_DURATION,
        audio: Optional[AudioPreparer] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.tools = tools
        self.transcription = transcription
        self.policy = policy or IntervalTimestamps()
        self.max_frames = max_frames
        self.skip_failed_frames = skip_failed_frames
        self.frame_reference = frame_reference
        self.default_duration = default_duration
        self.audio = audio or AudioPreparer(tools)
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep = sleep
        self.clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transcription: TranscriptionService,
        runner: Optional[ProcessRunner] = None,
    ) -> "ContextPipeline":
        tools = MediaTools(
            runner=runner or ProcessRunner(timeout=settings.process_timeout),
            ffmpeg_binary=settings.ffmpeg_binary,
            ffprobe_binary=settings.ffprobe_binary,
        )
        audio = AudioPreparer(
            tools,
            sample_rate=settings.audio_sample_rate,
            gain=settings.audio_gain,
            noise_floor_db=settings.silence_noise_db,
            min_silence_seconds=settings.silence_min_duration,
            silent_peak_db=settings.silent_peak_db,
            max_silence_intervals=settings.max_silence_intervals,
        )
        return cls(
            tools,
            transcription,
            policy=settings.timestamp_policy(),
            max_frames=settings.max_frames,
            skip_failed_frames=settings.skip_failed_frames,
            frame_reference=settings.frame_reference,
            default_duration=settings.default_duration,
            audio=audio,
            retry_policy=RetryPolicy(
                max_attempts=settings.transcription_max_attempts,
                base_delay=settings.transcription_backoff_seconds,
            ),
        )

    def run(
        self,
        session_id: str,
        paths: SessionPaths,
        control: Optional[PipelineControl] = None,
    ) -> ContextDocument:
        """Turn ``paths.raw`` into a context document; fatal stage errors propagate."""

        paths.ensure()
        LOGGER.info("Starting video processing for session %s", session_id)
        try:
            sanitize_recording(self.tools, paths.raw, paths.sanitized)
            self._checkpoint(control)

            duration = probe_duration(self.tools, paths.sanitized, default=self.default_duration)
            LOGGER.info("Video duration: %.2f seconds (%s)", duration.seconds, duration.source.value)

            frames = extract_frames(
                self.tools,
                paths.sanitized,
                duration.seconds,
                paths.frames,
                self.policy,
                self.max_frames,
                skip_failures=self.skip_failed_frames,
            )
            self._checkpoint(control)

            transcriber = Transcriber(self.transcription, self.retry_policy, sleep=self.sleep, control=control)
            transcript = transcribe_recording(
                self.audio, transcriber, paths.sanitized, paths.audio, paths.transcript
            )
            self._checkpoint(control)
        finally:
            paths.sanitized.unlink(missing_ok=True)

        segments = parse_transcript(transcript)
        entries = correlate(frames, segments)
        LOGGER.info(
            "Correlated %d frames with %d transcript segments (%d matched)",
            len(entries),
            len(segments),
            sum(1 for entry in entries if entry.matched),
        )

        captured_at = self.clock()
        text = assemble_context(
            entries,
            transcript,
            duration.seconds,
            captured_at,
            frame_reference=self.frame_reference,
            frame_policy=self.policy.describe(),
        )
        return ContextDocument(
            session_id=session_id,
            text=text,
            duration_seconds=duration.seconds,
            frame_count=len(entries),
            transcript=transcript,
            captured_at=captured_at,
        )

    @staticmethod
    def _checkpoint(control: Optional[PipelineControl]) -> None:
        if control is not None and control.should_stop:
            raise PipelineCancelled("Pipeline cancelled by host")


__all__ = ["ContextPipeline", "SessionPaths"]
