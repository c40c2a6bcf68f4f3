"""Still frame extraction at deterministic timestamps."""

from __future__ import annotations

import abc
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ...data.models import FrameSample
from ...logging import get_logger
from ..errors import FrameExtractionFailed, ToolError
from .runner import MediaTools

LOGGER = get_logger(__name__)

FRAME_SUFFIX = ".png"
_FRAME_NAME = re.compile(r"^frame-(\d+(?:\.\d+)?)\.png$")


class TimestampPolicy(abc.ABC):
    """Chooses candidate capture times for a recording of a given duration."""

    @abc.abstractmethod
    def candidates(self, duration: float) -> Iterable[float]:
        """Yield candidate timestamps in seconds."""

    @abc.abstractmethod
    def describe(self) -> str:
        """Short human readable description used in the context header."""


@dataclass(frozen=True)
class FixedTimestamps(TimestampPolicy):
    seconds: Sequence[float]

    def candidates(self, duration: float) -> Iterable[float]:
        return list(self.seconds)

    def describe(self) -> str:
        return "at fixed timestamps"


@dataclass(frozen=True)
class IntervalTimestamps(TimestampPolicy):
    interval: float = 3.0
    offset: float = 1.5

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError("Frame interval must be positive")

    def candidates(self, duration: float) -> Iterable[float]:
        index = 0
        while True:
            # multiply instead of accumulating so 1.5 + 3n stays exact
            timestamp = round(self.offset + index * self.interval, 3)
            if timestamp >= duration:
                return
            yield timestamp
            index += 1

    def describe(self) -> str:
        return f"1 per {self.interval:g} seconds"


def plan_timestamps(policy: TimestampPolicy, duration: float, max_frames: int) -> List[float]:
    """Return sorted unique timestamps inside ``[0, duration)``, capped at ``max_frames``."""

    if max_frames < 1:
        raise ValueError("max_frames must be at least 1")
    planned = sorted({float(t) for t in policy.candidates(duration) if 0 <= t < duration})
    if len(planned) > max_frames:
        LOGGER.info("Capping %d planned frames to %d", len(planned), max_frames)
    return planned[:max_frames]


def frame_filename(timestamp: float) -> str:
    token = f"{timestamp:.3f}".rstrip("0").rstrip(".")
    return f"frame-{token}{FRAME_SUFFIX}"


def timestamp_from_filename(name: str) -> Optional[float]:
    match = _FRAME_NAME.match(name)
    if not match:
        return None
    return float(match.group(1))


def load_frames(directory: Path) -> List[FrameSample]:
    """Re-derive the ordered frame samples from the files in ``directory``."""

    samples = []
    for path in Path(directory).glob(f"frame-*{FRAME_SUFFIX}"):
        timestamp = timestamp_from_filename(path.name)
        if timestamp is not None:
            samples.append(FrameSample(timestamp=timestamp, path=path))
    return sorted(samples)


def extract_frames(
    tools: MediaTools,
    video_path: Path,
    duration: float,
    frames_dir: Path,
    policy: TimestampPolicy,
    max_frames: int,
    skip_failures: bool = False,
) -> List[FrameSample]:
    """Extract one still per planned timestamp.

    Every timestamp is its own ffmpeg invocation. By default the first failure
    aborts extraction; with ``skip_failures`` the frame is dropped instead. An
    empty result is always an error.
    """

    frames_dir = Path(frames_dir)
    frames_dir.mkdir(parents=True, exist_ok=True)
    for stale in frames_dir.glob(f"frame-*{FRAME_SUFFIX}"):
        stale.unlink()

    timestamps = plan_timestamps(policy, duration, max_frames)
    LOGGER.info("Extracting %d frames at: %s", len(timestamps), ", ".join(f"{t:.1f}s" for t in timestamps))

    samples: List[FrameSample] = []
    for timestamp in timestamps:
        output = frames_dir / frame_filename(timestamp)
        try:
            tools.ffmpeg(
                "-y",
                "-ss", f"{timestamp:.3f}",
                "-i", str(video_path),
                "-frames:v", "1",
                str(output),
            )
            if not output.exists() or output.stat().st_size == 0:
                raise FrameExtractionFailed(f"No image produced at {timestamp:.1f}s")
        except (ToolError, FrameExtractionFailed) as exc:
            if not skip_failures:
                raise FrameExtractionFailed(f"Error extracting frame at {timestamp:.1f}s: {exc}") from exc
            LOGGER.warning("Skipping frame at %.1fs: %s", timestamp, exc)
            continue
        samples.append(FrameSample(timestamp=timestamp, path=output))

    if not samples:
        raise FrameExtractionFailed("No frames could be extracted from the recording")
    return samples


__all__ = [
    "FixedTimestamps",
    "IntervalTimestamps",
    "TimestampPolicy",
    "extract_frames",
    "frame_filename",
    "load_frames",
    "plan_timestamps",
    "timestamp_from_filename",
]
