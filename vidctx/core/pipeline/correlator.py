"""Align extracted frames with timestamped transcript segments."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from ...data.models import CorrelatedEntry, FrameSample, TranscriptSegment

CORRELATION_TOLERANCE_SECONDS = 5.0

_SEGMENT_LINE = re.compile(r"\[(\d{2}):(\d{2})\]\s*(.+)")


def parse_transcript(transcript: str) -> List[TranscriptSegment]:
    """Parse ``[MM:SS] text`` lines; anything else, sentinels included, is skipped."""

    segments: List[TranscriptSegment] = []
    for line in transcript.splitlines():
        match = _SEGMENT_LINE.search(line)
        if not match:
            continue
        text = match.group(3).strip()
        if not text:
            continue
        minutes, seconds = int(match.group(1)), int(match.group(2))
        segments.append(TranscriptSegment(timestamp=minutes * 60 + seconds, text=text))
    return segments


def find_closest_segment(
    segments: Sequence[TranscriptSegment],
    timestamp: float,
    tolerance: float = CORRELATION_TOLERANCE_SECONDS,
) -> Tuple[Optional[TranscriptSegment], Optional[float]]:
    closest: Optional[TranscriptSegment] = None
    best: Optional[float] = None
    for segment in segments:
        distance = abs(segment.timestamp - timestamp)
        # strict comparison keeps the first of equally close segments
        if best is None or distance < best:
            closest, best = segment, distance
    if best is None or best > tolerance:
        return None, None
    return closest, best


def correlate(
    frames: Iterable[FrameSample],
    segments: Sequence[TranscriptSegment],
    tolerance: float = CORRELATION_TOLERANCE_SECONDS,
) -> List[CorrelatedEntry]:
    entries = []
    for frame in sorted(frames):
        segment, distance = find_closest_segment(segments, frame.timestamp, tolerance)
        entries.append(CorrelatedEntry(frame=frame, segment=segment, distance=distance))
    return entries


__all__ = [
    "CORRELATION_TOLERANCE_SECONDS",
    "correlate",
    "find_closest_segment",
    "parse_transcript",
]
