"""Tests for CLI commands."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from vidctx import cli, config
from vidctx.config import Settings
from vidctx.core.media.frames import FixedTimestamps
from vidctx.core.pipeline.orchestrator import ContextPipeline
from vidctx.core.pipeline.session import CaptureSession

runner = CliRunner()


@pytest.fixture
def cli_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    settings = Settings(base_dir=tmp_path / "sessions")
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(config, "_settings", settings)
    monkeypatch.setattr(cli, "configure_logging", lambda: None)
    return settings


@pytest.fixture
def fake_sessions(monkeypatch, make_tools):
    created: list[CaptureSession] = []

    def build(settings, transcription):
        pipeline = ContextPipeline(
            make_tools(format_duration="10.0"),
            transcription,
            policy=FixedTimestamps([2, 7]),
            frame_reference=settings.frame_reference,
            sleep=lambda _delay: None,
        )
        session = CaptureSession(pipeline, settings.base_dir, prefix=settings.session_prefix)
        created.append(session)
        return session

    monkeypatch.setattr(cli, "_build_session", build)
    return created


def test_process_prints_document_and_cleans_up(cli_settings, fake_sessions, tmp_path) -> None:
    video = tmp_path / "clip.webm"
    video.write_bytes(b"webm")

    result = runner.invoke(cli.app, ["process", str(video), "--transcription-backend", "dummy"])

    assert result.exit_code == 0, result.output
    assert "## Video Context Captured" in result.output
    assert "- Frames: 2 (at fixed timestamps)" in result.output
    assert not fake_sessions[0].paths.root.exists()


def test_process_keeps_artifacts_on_request(cli_settings, fake_sessions, tmp_path) -> None:
    video = tmp_path / "clip.webm"
    video.write_bytes(b"webm")

    result = runner.invoke(
        cli.app, ["process", str(video), "--transcription-backend", "dummy", "--keep-artifacts"]
    )

    assert result.exit_code == 0, result.output
    frames = sorted(path.name for path in fake_sessions[0].paths.frames.iterdir())
    assert frames == ["frame-2.png", "frame-7.png"]


def test_process_reports_fatal_errors(cli_settings, fake_sessions, tmp_path) -> None:
    video = tmp_path / "empty.webm"
    video.write_bytes(b"")

    result = runner.invoke(cli.app, ["process", str(video), "--transcription-backend", "dummy"])

    assert result.exit_code == 1
    assert "Video processing failed" in result.output
    assert not fake_sessions[0].paths.root.exists()


def test_unknown_backend_is_a_usage_error(cli_settings, fake_sessions, tmp_path) -> None:
    video = tmp_path / "clip.webm"
    video.write_bytes(b"webm")

    result = runner.invoke(cli.app, ["process", str(video), "--transcription-backend", "whisper-local"])

    assert result.exit_code == 2
    assert fake_sessions == []


def test_settings_lists_environment_names(cli_settings) -> None:
    result = runner.invoke(cli.app, ["settings"])

    assert result.exit_code == 0
    assert "VIDCTX_MAX_FRAMES=6" in result.output
    assert "VIDCTX_FRAME_REFERENCE=inline" in result.output


def test_set_setting_rejects_unknown_field(cli_settings) -> None:
    result = runner.invoke(cli.app, ["set-setting", "frames_per_minute", "4"])

    assert result.exit_code == 2


class _BusyUploadServer:
    def __init__(self, app, host="127.0.0.1", port=8765) -> None:
        self.url = f"http://{host}:{port}"
        self.stopped = False

    def start(self) -> None:
        raise RuntimeError("Upload server failed to start: address already in use")

    def stop(self) -> None:
        self.stopped = True


def test_capture_reports_server_start_failure(cli_settings, fake_sessions, monkeypatch) -> None:
    monkeypatch.setattr(cli, "UploadServer", _BusyUploadServer)

    result = runner.invoke(cli.app, ["capture", "--transcription-backend", "dummy", "--no-open-browser"])

    assert result.exit_code == 1
    assert "Video recording failed: Upload server failed to start" in result.output
    assert not fake_sessions[0].paths.root.exists()


def test_process_reports_unexpected_errors(cli_settings, fake_sessions, monkeypatch, tmp_path) -> None:
    video = tmp_path / "clip.webm"
    video.write_bytes(b"webm")

    def disk_full(self, recording):
        raise OSError("No space left on device")

    monkeypatch.setattr(CaptureSession, "process", disk_full)

    result = runner.invoke(cli.app, ["process", str(video), "--transcription-backend", "dummy"])

    assert result.exit_code == 1
    assert "Video processing failed: No space left on device" in result.output
