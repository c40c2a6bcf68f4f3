"""Duration and stream probing via ffprobe."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Optional

from ...data.models import DurationEstimate, DurationSource
from ...logging import get_logger
from ..errors import ToolError
from .runner import MediaTools

LOGGER = get_logger(__name__)

DEFAULT_DURATION = 5.0

_VALUE_ONLY = ("-of", "default=noprint_wrappers=1:nokey=1")


def _parse_seconds(text: str) -> Optional[float]:
    for line in text.splitlines():
        try:
            value = float(line.strip())
        except ValueError:
            continue
        if math.isfinite(value) and value > 0:
            return value
    return None


def _query(tools: MediaTools, path: Path, *selection: str) -> Optional[float]:
    try:
        result = tools.ffprobe(*selection, *_VALUE_ONLY, str(path))
    except ToolError as exc:
        LOGGER.debug("ffprobe %s failed: %s", " ".join(selection), exc)
        return None
    return _parse_seconds(result.stdout)


def probe_duration(tools: MediaTools, path: Path, default: float = DEFAULT_DURATION) -> DurationEstimate:
    """Return the recording duration, falling back from container to stream to ``default``.

    Never raises: browser WebM files often report ``N/A`` at container level,
    and downstream timestamp maths only needs a positive value.
    """

    seconds = _query(tools, path, "-show_entries", "format=duration")
    if seconds is not None:
        return DurationEstimate(seconds, DurationSource.FORMAT)

    seconds = _query(tools, path, "-select_streams", "v:0", "-show_entries", "stream=duration")
    if seconds is not None:
        LOGGER.info("Container duration unavailable; using video stream duration")
        return DurationEstimate(seconds, DurationSource.STREAM)

    LOGGER.warning("Could not determine duration of %s; assuming %.1f seconds", Path(path).name, default)
    return DurationEstimate(default, DurationSource.DEFAULT)


def has_audio_stream(tools: MediaTools, path: Path) -> bool:
    """Return True if the first audio stream exists. Probe errors count as no audio."""

    try:
        result = tools.ffprobe(
            "-select_streams", "a:0", "-show_entries", "stream=codec_name", *_VALUE_ONLY, str(path)
        )
    except ToolError as exc:
        LOGGER.debug("Audio stream probe failed: %s", exc)
        return False
    return bool(result.stdout.strip())


__all__ = ["DEFAULT_DURATION", "has_audio_stream", "probe_duration"]
