from __future__ import annotations

import shutil
import wave
from pathlib import Path
from typing import Iterable, Optional

import numpy as np
import pytest

from vidctx.core.errors import ToolFailed
from vidctx.core.media.runner import MediaTools, ProcessResult


class FakeMediaRunner:
    """Scripted stand-in for ffmpeg and ffprobe that writes placeholder artifacts."""

    def __init__(
        self,
        *,
        format_duration: Optional[str] = "20.000000",
        stream_duration: Optional[str] = "N/A",
        audio_codec: Optional[str] = "opus",
        max_volume: Optional[float] = -12.0,
        silence_starts: int = 0,
        audio_bytes: bytes = b"RIFF-fake-wave",
        fail: Iterable[str] = (),
        frame_failures: Iterable[float] = (),
    ) -> None:
        self.format_duration = format_duration
        self.stream_duration = stream_duration
        self.audio_codec = audio_codec
        self.max_volume = max_volume
        self.silence_starts = silence_starts
        self.audio_bytes = audio_bytes
        self.fail = set(fail)
        self.frame_failures = set(frame_failures)
        self.calls: list[list[str]] = []
        self.terminated = False

    def terminate_all(self) -> None:
        self.terminated = True

    def calls_for(self, stage: str) -> list[list[str]]:
        return [call for call in self.calls if _stage(call) == stage]

    def run(self, args, *, timeout=None, check=True) -> ProcessResult:
        args = [str(arg) for arg in args]
        self.calls.append(args)
        stage = _stage(args)
        handler = getattr(self, f"_{stage}")
        code, stdout, stderr = handler(args)
        result = ProcessResult(args=args, returncode=code, stdout=stdout, stderr=stderr)
        if check and code != 0:
            raise ToolFailed(f"fake {stage} failed", result)
        return result

    def _probe(self, args):
        entries = args[args.index("-show_entries") + 1]
        value = {
            "format=duration": self.format_duration,
            "stream=duration": self.stream_duration,
            "stream=codec_name": self.audio_codec,
        }[entries]
        if entries == "stream=codec_name" and value is None:
            return 0, "", ""
        if value is None:
            return 1, "", "probe error"
        return 0, f"{value}\n", ""

    def _sanitize(self, args):
        if "sanitize" in self.fail:
            return 1, "", "Invalid data found when processing input"
        shutil.copyfile(args[args.index("-i") + 1], args[-1])
        return 0, "", ""

    def _frame(self, args):
        timestamp = float(args[args.index("-ss") + 1])
        if timestamp in self.frame_failures:
            return 1, "", "seek failed"
        Path(args[-1]).write_bytes(f"PNG@{timestamp:g}".encode())
        return 0, "", ""

    def _extract(self, args):
        if "extract" in self.fail:
            return 1, "", "Output file does not contain any stream"
        Path(args[-1]).write_bytes(self.audio_bytes)
        return 0, "", ""

    def _silence(self, args):
        lines = [f"[silencedetect @ 0x1] silence_start: {index}.5" for index in range(self.silence_starts)]
        return 0, "", "\n".join(lines)

    def _volume(self, args):
        if self.max_volume is None:
            return 0, "", "[Parsed_volumedetect_0 @ 0x1] n_samples: 0"
        return 0, "", f"[Parsed_volumedetect_0 @ 0x1] max_volume: {self.max_volume:.1f} dB"


def _stage(args: list[str]) -> str:
    if Path(args[0]).name == "ffprobe":
        return "probe"
    if "copy" in args:
        return "sanitize"
    if "-frames:v" in args:
        return "frame"
    audio_filter = args[args.index("-af") + 1]
    if audio_filter.startswith("volume="):
        return "extract"
    if audio_filter.startswith("silencedetect"):
        return "silence"
    return "volume"


@pytest.fixture
def make_tools():
    def _make(**kwargs) -> MediaTools:
        return MediaTools(runner=FakeMediaRunner(**kwargs))

    return _make


def _write_wave(path: Path, data: np.ndarray, sample_rate: int) -> None:
    if data.ndim == 1:
        data = data[:, np.newaxis]
    int16 = (np.clip(data, -1.0, 1.0) * 32767.0).astype(np.int16)
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(data.shape[1])
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(int16.tobytes())


@pytest.fixture
def write_wav():
    """Write float samples in [-1, 1] as a 16-bit PCM wave."""

    return _write_wave
