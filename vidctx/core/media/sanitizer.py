"""Lossless container repair for browser recordings."""

from __future__ import annotations

from pathlib import Path

from ...logging import get_logger
from ..errors import SanitizationFailed, ToolError
from .runner import MediaTools

LOGGER = get_logger(__name__)


def sanitize_recording(tools: MediaTools, raw_path: Path, output_path: Path) -> Path:
    """Stream-copy ``raw_path`` into ``output_path`` so the container headers are well formed.

    MediaRecorder output frequently lacks duration and cue metadata; a remux
    without re-encoding rewrites them without any quality loss.
    """

    raw_path = Path(raw_path)
    output_path = Path(output_path)
    if not raw_path.exists() or raw_path.stat().st_size == 0:
        raise SanitizationFailed(f"Uploaded recording {raw_path.name} is empty or missing")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    LOGGER.info("Sanitizing %s", raw_path.name)
    try:
        tools.ffmpeg("-i", str(raw_path), "-y", "-c", "copy", str(output_path))
    except ToolError as exc:
        raise SanitizationFailed(f"Error sanitizing video: {exc}") from exc

    if not output_path.exists() or output_path.stat().st_size == 0:
        raise SanitizationFailed("Sanitized recording was not written")
    return output_path


__all__ = ["sanitize_recording"]
