"""Data models used by vidctx."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict


class DurationSource(str, enum.Enum):
    FORMAT = "format"
    STREAM = "stream"
    DEFAULT = "default"


@dataclass(frozen=True)
class DurationEstimate:
    seconds: float
    source: DurationSource

    def __post_init__(self) -> None:
        if not math.isfinite(self.seconds) or self.seconds <= 0:
            raise ValueError(f"Duration must be a positive number of seconds, got {self.seconds!r}")


@dataclass(frozen=True, order=True)
class FrameSample:
    """A still image captured at ``timestamp`` seconds into the recording."""

    timestamp: float
    path: Path = field(compare=False)


class TranscriptSegment(BaseModel):
    timestamp: int
    text: str


@dataclass
class CorrelatedEntry:
    frame: FrameSample
    segment: Optional[TranscriptSegment] = None
    distance: Optional[float] = None

    @property
    def matched(self) -> bool:
        return self.segment is not None


class ContextDocument(BaseModel):
    """The assembled multimodal context handed back to the host."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    text: str
    duration_seconds: float
    frame_count: int
    transcript: str
    captured_at: datetime


__all__ = [
    "ContextDocument",
    "CorrelatedEntry",
    "DurationEstimate",
    "DurationSource",
    "FrameSample",
    "TranscriptSegment",
]
