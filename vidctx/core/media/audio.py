"""Audio track extraction and validation ahead of transcription."""

from __future__ import annotations

import math
import re
import wave
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ...logging import get_logger
from ...utils.audio import peak_dbfs
from ..errors import AudioSilent, AudioUnavailable, ToolError
from .probe import has_audio_stream
from .runner import MediaTools

LOGGER = get_logger(__name__)

EXTRACTION_FAILED = "[Audio extraction failed]"
NO_AUDIO_CONTENT = "[No audio content found]"

_SILENCE_START = re.compile(r"silence_start")
_MAX_VOLUME = re.compile(r"max_volume:\s*(-?[\d.]+|-?inf)\s*dB")


@dataclass(frozen=True)
class SilenceReport:
    silence_intervals: int
    peak_db: float


def count_silence_intervals(output: str) -> int:
    return len(_SILENCE_START.findall(output))


def parse_max_volume(output: str) -> Optional[float]:
    match = _MAX_VOLUME.search(output)
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def is_silent(report: SilenceReport, silent_peak_db: float = -60.0, max_intervals: int = 3) -> bool:
    """Quiet-throughout audio fails the peak test; mostly-silent audio fails the interval test."""

    return report.peak_db < silent_peak_db or report.silence_intervals > max_intervals


class AudioPreparer:
    """Extracts a mono PCM track and rejects recordings not worth transcribing."""

    def __init__(
        self,
        tools: MediaTools,
        *,
        sample_rate: int = 16_000,
        gain: float = 10.0,
        noise_floor_db: float = -30.0,
        min_silence_seconds: float = 0.5,
        silent_peak_db: float = -60.0,
        max_silence_intervals: int = 3,
    ) -> None:
        self.tools = tools
        self.sample_rate = sample_rate
        self.gain = gain
        self.noise_floor_db = noise_floor_db
        self.min_silence_seconds = min_silence_seconds
        self.silent_peak_db = silent_peak_db
        self.max_silence_intervals = max_silence_intervals

    def prepare(self, video_path: Path, audio_path: Path) -> Path:
        """Return a validated WAV at ``audio_path`` or raise a recoverable audio error."""

        if not has_audio_stream(self.tools, video_path):
            raise AudioUnavailable("Recording has no audio track")

        audio_path = Path(audio_path)
        audio_path.unlink(missing_ok=True)
        try:
            self.extract(video_path, audio_path)
        except ToolError as exc:
            raise AudioUnavailable(f"Audio extraction failed: {exc}", sentinel=EXTRACTION_FAILED) from exc

        if not audio_path.exists() or audio_path.stat().st_size == 0:
            raise AudioUnavailable("Extracted audio is empty", sentinel=NO_AUDIO_CONTENT)

        report = self.analyse_silence(audio_path)
        LOGGER.info(
            "Audio analysis: peak %.1f dB, %d silence intervals",
            report.peak_db,
            report.silence_intervals,
        )
        if is_silent(report, self.silent_peak_db, self.max_silence_intervals):
            raise AudioSilent("Audio is silent")
        return audio_path

    def extract(self, video_path: Path, audio_path: Path) -> None:
        # browser microphone capture is usually quiet, hence the fixed gain
        self.tools.ffmpeg(
            "-i", str(video_path),
            "-y",
            "-af", f"volume={self.gain:g}",
            "-acodec", "pcm_s16le",
            "-ar", str(self.sample_rate),
            "-ac", "1",
            "-vn",
            "-f", "wav",
            str(audio_path),
        )

    def analyse_silence(self, audio_path: Path) -> SilenceReport:
        silence_output = self._filter_output(
            audio_path, f"silencedetect=noise={self.noise_floor_db:g}dB:d={self.min_silence_seconds:g}"
        )
        volume_output = self._filter_output(audio_path, "volumedetect")

        peak = parse_max_volume(volume_output)
        if peak is None:
            peak = self._measure_peak(audio_path)
        return SilenceReport(silence_intervals=count_silence_intervals(silence_output), peak_db=peak)

    def _filter_output(self, audio_path: Path, audio_filter: str) -> str:
        try:
            result = self.tools.ffmpeg(
                "-i", str(audio_path), "-af", audio_filter, "-f", "null", "-",
                loglevel="info",
                check=False,
            )
        except ToolError as exc:
            LOGGER.warning("Audio filter %s could not run: %s", audio_filter, exc)
            return ""
        return result.output

    def _measure_peak(self, audio_path: Path) -> float:
        try:
            return peak_dbfs(audio_path)
        except (OSError, ValueError, EOFError, wave.Error) as exc:
            LOGGER.warning("Could not measure peak level of %s: %s", audio_path.name, exc)
            return -math.inf


__all__ = [
    "AudioPreparer",
    "EXTRACTION_FAILED",
    "NO_AUDIO_CONTENT",
    "SilenceReport",
    "count_silence_intervals",
    "is_silent",
    "parse_max_volume",
]
