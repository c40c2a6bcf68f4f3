"""Blocking execution of external media tools."""

from __future__ import annotations

import contextlib
import shutil
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Set

from ...logging import get_logger
from ..errors import ToolFailed, ToolUnavailable

LOGGER = get_logger(__name__)


@dataclass
class ProcessResult:
    """Captured outcome of a finished process."""

    args: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        """Combined stdout and stderr; ffmpeg filters report on stderr."""

        return self.stdout + self.stderr


class ProcessRunner:
    """Run a command to completion and capture its output.

    Each call is isolated: stdin is closed, both output pipes are drained and
    the child is always reaped, including when the timeout fires. Retrying is
    left to callers.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout
        self._lock = threading.Lock()
        self._active: Set[subprocess.Popen] = set()

    def run(
        self,
        args: Sequence[str],
        *,
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> ProcessResult:
        command = [str(arg) for arg in args]
        executable = _resolve_binary(command[0])
        if executable is None:
            raise ToolUnavailable(f"Executable '{command[0]}' was not found on PATH")
        command[0] = executable

        LOGGER.debug("Running %s", " ".join(command))
        try:
            process = subprocess.Popen(  # noqa: S603 - arguments are never passed through a shell
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise ToolUnavailable(f"Failed to launch '{executable}'") from exc

        with self._lock:
            self._active.add(process)
        limit = timeout if timeout is not None else self.timeout
        try:
            try:
                stdout, stderr = process.communicate(timeout=limit)
            except subprocess.TimeoutExpired:
                process.kill()
                stdout, stderr = process.communicate()
                result = _result(command, process.returncode, stdout, stderr)
                raise ToolFailed(f"{Path(executable).name} timed out after {limit} seconds", result)
        finally:
            with self._lock:
                self._active.discard(process)

        result = _result(command, process.returncode, stdout, stderr)
        if check and result.returncode != 0:
            LOGGER.debug("%s stderr: %s", Path(executable).name, result.stderr.strip())
            raise ToolFailed(
                f"{Path(executable).name} exited with code {result.returncode}: {_tail(result.stderr)}",
                result,
            )
        return result

    def terminate_all(self) -> None:
        """Kill every process currently started by this runner."""

        with self._lock:
            processes = list(self._active)
        for process in processes:
            LOGGER.info("Killing in-flight process %s", process.pid)
            with contextlib.suppress(Exception):
                process.kill()


@dataclass
class MediaTools:
    """ffmpeg/ffprobe command builders bound to a runner."""

    runner: ProcessRunner
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"

    def ffmpeg(self, *args: str, loglevel: str = "error", check: bool = True) -> ProcessResult:
        command = [self.ffmpeg_binary, "-hide_banner", "-nostats", "-loglevel", loglevel]
        command.extend(args)
        return self.runner.run(command, check=check)

    def ffprobe(self, *args: str, check: bool = True) -> ProcessResult:
        command = [self.ffprobe_binary, "-v", "error"]
        command.extend(args)
        return self.runner.run(command, check=check)


def _result(command: List[str], returncode: Optional[int], stdout: bytes, stderr: bytes) -> ProcessResult:
    return ProcessResult(
        args=command,
        returncode=returncode if returncode is not None else -1,
        stdout=(stdout or b"").decode("utf-8", errors="replace"),
        stderr=(stderr or b"").decode("utf-8", errors="replace"),
    )


def _tail(text: str, lines: int = 3) -> str:
    return " | ".join(text.strip().splitlines()[-lines:])


def _resolve_binary(binary: str) -> Optional[str]:
    """Return the absolute path to the requested binary if available."""

    found = shutil.which(binary)
    if found:
        return found

    candidate = Path(binary)
    if candidate.is_file():
        return str(candidate)

    return None


__all__ = ["MediaTools", "ProcessResult", "ProcessRunner"]
