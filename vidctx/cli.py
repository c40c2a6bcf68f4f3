"""Typer CLI entry point for vidctx."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from .config import (
    EnvironmentSettingError,
    Settings,
    clear_environment_setting,
    get_settings,
    list_environment_settings,
    update_environment_setting,
)
from .core.errors import PipelineError
from .core.pipeline.orchestrator import ContextPipeline
from .core.pipeline.session import CaptureSession
from .logging import configure_logging, get_logger
from .server import UploadServer, create_app
from .services.factory import ServiceConfigurationError, resolve_transcription_backend
from .services.transcription.base import TranscriptionService

app = typer.Typer(help="Turn a short screen recording into a frame-and-transcript context document")
LOGGER = get_logger(__name__)


def _build_transcription(backend: Optional[str], settings: Settings) -> TranscriptionService:
    try:
        return resolve_transcription_backend(backend or settings.transcription_backend)
    except (ServiceConfigurationError, RuntimeError) as exc:
        raise typer.BadParameter(str(exc)) from exc


def _build_session(settings: Settings, transcription: TranscriptionService) -> CaptureSession:
    pipeline = ContextPipeline.from_settings(settings, transcription)
    return CaptureSession(pipeline, settings.base_dir, prefix=settings.session_prefix)


def _finish(session: CaptureSession, settings: Settings, keep_artifacts: bool, succeeded: bool) -> None:
    # documents that reference frames by path need the session directory to survive
    if keep_artifacts or (succeeded and settings.frame_reference == "path"):
        typer.echo(f"Artifacts kept in {session.paths.root}", err=True)
        return
    session.close()


@app.command()
def capture(
    transcription_backend: Optional[str] = typer.Option(None, help="Transcription backend: openai/dummy"),
    port: Optional[int] = typer.Option(None, help="Port for the upload endpoint"),
    open_browser: Optional[bool] = typer.Option(None, "--open-browser/--no-open-browser", help="Open the capture page"),
    keep_artifacts: bool = typer.Option(False, help="Keep the session directory after the document is printed"),
) -> None:
    """Wait for one browser upload and print its context document."""

    configure_logging()
    settings = get_settings()
    transcription = _build_transcription(transcription_backend, settings)
    session = _build_session(settings, transcription)
    server = UploadServer(
        create_app(session, settings.max_recording_seconds, settings.capture_page_dir),
        host=settings.server_host,
        port=port or settings.server_port,
    )

    succeeded = False
    try:
        server.start()
        session.arm()
        typer.echo(f"Waiting for a recording (max {settings.max_recording_seconds}s) at {server.url}", err=True)
        should_open = settings.open_browser if open_browser is None else open_browser
        if should_open and settings.capture_page_dir is not None:
            typer.launch(f"{server.url}/?autostart=true")
        document = session.wait()
        succeeded = True
    except KeyboardInterrupt:
        session.cancel()
        typer.echo("Capture cancelled", err=True)
        raise typer.Exit(code=1)
    except PipelineError as exc:
        typer.echo(f"Video recording failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except Exception as exc:
        LOGGER.exception("Capture failed unexpectedly")
        typer.echo(f"Video recording failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        server.stop()
        _finish(session, settings, keep_artifacts, succeeded)

    typer.echo(document.text)


@app.command()
def process(
    video: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Recording to process"),
    transcription_backend: Optional[str] = typer.Option(None, help="Transcription backend: openai/dummy"),
    keep_artifacts: bool = typer.Option(False, help="Keep the session directory after the document is printed"),
) -> None:
    """Build the context document for a recording already on disk."""

    configure_logging()
    settings = get_settings()
    session = _build_session(settings, _build_transcription(transcription_backend, settings))

    succeeded = False
    try:
        document = session.process(video)
        succeeded = True
    except PipelineError as exc:
        typer.echo(f"Video processing failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except Exception as exc:
        LOGGER.exception("Processing failed unexpectedly")
        typer.echo(f"Video processing failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        _finish(session, settings, keep_artifacts, succeeded)

    typer.echo(document.text)


@app.command()
def settings() -> None:
    """List configuration values and their environment variables."""

    for entry in list_environment_settings():
        typer.echo(f"{entry.env_name}={entry.value!s}  (default: {entry.default!s})")


@app.command("set-setting")
def set_setting(field: str = typer.Argument(...), value: str = typer.Argument(...)) -> None:
    """Persist a setting override to .env."""

    try:
        update_environment_setting(field, value)
    except EnvironmentSettingError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"{field} updated")


@app.command("clear-setting")
def clear_setting(field: str = typer.Argument(...)) -> None:
    """Remove a setting override from .env."""

    try:
        clear_environment_setting(field)
    except EnvironmentSettingError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"{field} cleared")


if __name__ == "__main__":  # pragma: no cover
    app()
