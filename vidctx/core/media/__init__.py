"""Media stages built on the ffmpeg command line tools."""

from .runner import MediaTools, ProcessResult, ProcessRunner

__all__ = ["MediaTools", "ProcessResult", "ProcessRunner"]
