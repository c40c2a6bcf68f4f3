"""Cooperative cancellation for a running pipeline."""

from __future__ import annotations

from threading import Event


class PipelineControl:
    """Runtime stop flag shared between the host and a running pipeline."""

    def __init__(self) -> None:
        self._stop = Event()

    def request_stop(self) -> None:
        self._stop.set()

    @property
    def should_stop(self) -> bool:
        return self._stop.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; returns True early if a stop was requested."""

        return self._stop.wait(timeout)


__all__ = ["PipelineControl"]
