"""HTTP upload boundary for the browser capture page."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.staticfiles import StaticFiles

from .config import get_settings
from .core.pipeline.session import CaptureSession
from .logging import get_logger

LOGGER = get_logger(__name__)


def create_app(
    session: CaptureSession,
    max_recording_seconds: Optional[int] = None,
    static_dir: Optional[Path] = None,
) -> FastAPI:
    """Build the app serving exactly one capture session.

    ``static_dir`` optionally holds the browser capture page; it is mounted
    last so the API routes take precedence.
    """

    limit = max_recording_seconds or get_settings().max_recording_seconds
    app = FastAPI(title="vidctx capture")

    @app.get("/session")
    def read_session() -> dict:
        return {
            "session_id": session.id,
            "state": session.state.value,
            "max_recording_seconds": limit,
        }

    @app.post("/upload")
    def upload(video: UploadFile = File(...)) -> dict:
        # sync handler: FastAPI runs it in a worker thread, the pipeline runs on its own
        if not session.accept_upload(video.file):
            raise HTTPException(
                status_code=409,
                detail=f"Session {session.id} is not accepting uploads ({session.state.value})",
            )
        return {
            "message": "Upload successful. Processing started in the background.",
            "session_id": session.id,
        }

    if static_dir is not None:
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="capture-page")
    return app


class UploadServer:
    """Runs a uvicorn server on a daemon thread so the host can keep waiting on the session."""

    def __init__(self, app: FastAPI, host: str = "127.0.0.1", port: int = 8765) -> None:
        self.host = host
        self.port = port
        self._server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning"))
        self._thread: Optional[threading.Thread] = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def start(self, timeout: float = 10.0) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._server.run, name="upload-server", daemon=True)
        self._thread.start()
        deadline = time.monotonic() + timeout
        while not self._server.started:
            if not self._thread.is_alive():
                raise RuntimeError(f"Upload server failed to start on {self.url}")
            if time.monotonic() >= deadline:
                raise RuntimeError(f"Upload server did not start within {timeout} seconds")
            time.sleep(0.05)
        LOGGER.info("Upload server listening at %s", self.url)

    def stop(self) -> None:
        if self._thread is None:
            return
        self._server.should_exit = True
        self._thread.join(timeout=5)
        self._thread = None
        LOGGER.info("Upload server stopped")


__all__ = ["UploadServer", "create_app"]
