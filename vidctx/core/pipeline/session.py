"""Capture session lifecycle: one upload, one pipeline run, one result."""

from __future__ import annotations

import enum
import shutil
import threading
import uuid
from concurrent.futures import Future
from pathlib import Path
from typing import BinaryIO, Optional, Union

from ...data.models import ContextDocument
from ...logging import get_logger
from ..errors import PipelineCancelled, PipelineError
from .control import PipelineControl
from .orchestrator import ContextPipeline, SessionPaths

LOGGER = get_logger(__name__)


class SessionState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_UPLOAD = "awaiting_upload"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class CaptureSession:
    """Owns a namespaced working directory and the completion channel for one capture.

    ``accept_upload`` returns as soon as the recording is on disk; the pipeline
    runs on a background thread and its outcome is delivered through ``wait``.
    """

    def __init__(
        self,
        pipeline: ContextPipeline,
        base_dir: Path,
        session_id: Optional[str] = None,
        prefix: str = "capture",
    ) -> None:
        self.pipeline = pipeline
        self.id = session_id or f"{prefix}-{uuid.uuid4().hex[:8]}"
        self.paths = SessionPaths.for_session(base_dir, self.id)
        self.control = PipelineControl()
        self._state = SessionState.IDLE
        self._lock = threading.Lock()
        self._future: "Future[ContextDocument]" = Future()
        self._worker: Optional[threading.Thread] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def result(self) -> Optional[ContextDocument]:
        if self._future.done() and self._future.exception() is None:
            return self._future.result()
        return None

    def arm(self) -> None:
        with self._lock:
            if self._state is not SessionState.IDLE:
                raise RuntimeError(f"Session {self.id} is already {self._state.value}")
            self.paths.ensure()
            self._state = SessionState.AWAITING_UPLOAD
        LOGGER.info("Session %s awaiting upload in %s", self.id, self.paths.root)

    def accept_upload(self, payload: Union[bytes, BinaryIO]) -> bool:
        """Store the recording and start processing; False if the session already has one."""

        if not self._claim():
            LOGGER.warning("Rejecting upload for session %s in state %s", self.id, self._state.value)
            return False

        try:
            with open(self.paths.raw, "wb") as handle:
                if isinstance(payload, (bytes, bytearray)):
                    handle.write(payload)
                else:
                    shutil.copyfileobj(payload, handle)
        except OSError as exc:
            self._finish_with_error(exc)
            raise

        LOGGER.info("Recording uploaded to %s (%d bytes)", self.paths.raw, self.paths.raw.stat().st_size)
        self._worker = threading.Thread(target=self._run, name=f"pipeline-{self.id}", daemon=True)
        self._worker.start()
        return True

    def process(self, recording: Path) -> ContextDocument:
        """Run the pipeline synchronously on a recording already on disk."""

        if self._state is SessionState.IDLE:
            self.arm()
        if not self._claim():
            raise RuntimeError(f"Session {self.id} already received a recording")
        shutil.copyfile(recording, self.paths.raw)
        self._run()
        return self.wait()

    def wait(self, timeout: Optional[float] = None) -> ContextDocument:
        """Block until the document is ready; re-raises the fatal error on failure."""

        return self._future.result(timeout=timeout)

    def cancel(self) -> None:
        LOGGER.info("Cancelling session %s", self.id)
        self.control.request_stop()
        self.pipeline.tools.runner.terminate_all()
        with self._lock:
            if self._state in (SessionState.IDLE, SessionState.AWAITING_UPLOAD):
                self._state = SessionState.FAILED
                self._future.set_exception(PipelineCancelled("Capture cancelled before upload"))

    def close(self) -> None:
        """Delete every artifact the session produced."""

        if self._worker is not None and self._worker.is_alive():
            self.cancel()
            self._worker.join(timeout=5)
        shutil.rmtree(self.paths.root, ignore_errors=True)
        LOGGER.info("Removed session directory %s", self.paths.root)

    def _claim(self) -> bool:
        with self._lock:
            if self._state is not SessionState.AWAITING_UPLOAD:
                return False
            self._state = SessionState.PROCESSING
            return True

    def _run(self) -> None:
        try:
            document = self.pipeline.run(self.id, self.paths, self.control)
        except PipelineError as exc:
            LOGGER.error("Session %s failed: %s", self.id, exc)
            self._finish_with_error(exc)
        except Exception as exc:
            LOGGER.exception("Session %s failed unexpectedly", self.id)
            self._finish_with_error(exc)
        else:
            with self._lock:
                self._state = SessionState.COMPLETED
            self._future.set_result(document)
            LOGGER.info("Session %s completed with %d frames", self.id, document.frame_count)

    def _finish_with_error(self, exc: BaseException) -> None:
        with self._lock:
            self._state = SessionState.FAILED
        if not self._future.done():
            self._future.set_exception(exc)


__all__ = ["CaptureSession", "SessionState"]
