"""Render correlated frames and transcript into the context document text."""

from __future__ import annotations

import base64
import math
from datetime import datetime
from typing import List, Literal, Optional, Sequence

from ...data.models import CorrelatedEntry

FrameReference = Literal["inline", "path"]

NO_SPEECH_MARKER = "[No speech at this time]"


def format_timestamp(seconds: float) -> str:
    whole = int(math.floor(seconds))
    return f"{whole // 60:02d}:{whole % 60:02d}"


def _visual_context(entry: CorrelatedEntry, frame_reference: FrameReference) -> str:
    if frame_reference == "path":
        return f"**Visual Context:** {entry.frame.path.resolve()}"
    encoded = base64.b64encode(entry.frame.path.read_bytes()).decode("ascii")
    return f"**Visual Context:** [Base64 Image Data]\n{encoded}"


def _summary(frame_count: int) -> str:
    if frame_count > 1:
        return f"Developer demonstrating {frame_count} different issues/enhancements"
    return "Developer demonstrating an application workflow"


def assemble_context(
    entries: Sequence[CorrelatedEntry],
    transcript: str,
    duration: float,
    captured_at: datetime,
    frame_reference: FrameReference = "inline",
    frame_policy: Optional[str] = None,
) -> str:
    """Return the markdown context document; identical inputs give identical output."""

    if frame_reference not in ("inline", "path"):
        raise ValueError(f"Unknown frame reference mode: {frame_reference}")

    ordered = sorted(entries, key=lambda entry: entry.frame.timestamp)
    frames_line = f"- Frames: {len(ordered)}"
    if frame_policy:
        frames_line += f" ({frame_policy})"

    parts: List[str] = [
        "## Video Context Captured",
        "",
        "**Recording Details:**",
        f"- Duration: {int(math.floor(duration))} seconds",
        frames_line,
        f"- Timestamp: {captured_at.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        "**Issues/Enhancements with Visual Context:**",
    ]

    for index, entry in enumerate(ordered, start=1):
        if entry.segment is not None:
            explanation = entry.segment.text
            speech_at = format_timestamp(entry.segment.timestamp)
        else:
            explanation = NO_SPEECH_MARKER
            speech_at = "N/A"
        parts.extend(
            [
                "",
                f"### Issue {index} - Frame at {format_timestamp(entry.frame.timestamp)}",
                _visual_context(entry, frame_reference),
                "",
                f'**Developer Explanation:** "{explanation}"',
                f"**Speech Timestamp:** {speech_at}",
                "",
                "---",
            ]
        )

    parts.extend(
        [
            "",
            "**Full Audio Transcript:**",
            transcript,
            "",
            "**Context Summary:**",
            _summary(len(ordered)),
        ]
    )
    return "\n".join(parts) + "\n"


__all__ = ["FrameReference", "NO_SPEECH_MARKER", "assemble_context", "format_timestamp"]
