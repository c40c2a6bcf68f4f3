from __future__ import annotations

from pathlib import Path

import pytest

from vidctx.core.errors import SanitizationFailed
from vidctx.core.media.probe import has_audio_stream, probe_duration
from vidctx.core.media.sanitizer import sanitize_recording
from vidctx.data.models import DurationEstimate, DurationSource


def test_container_duration_is_preferred(make_tools, tmp_path: Path) -> None:
    tools = make_tools(format_duration="12.480000", stream_duration="11.0")

    estimate = probe_duration(tools, tmp_path / "video.webm")

    assert estimate.seconds == pytest.approx(12.48)
    assert estimate.source is DurationSource.FORMAT
    assert len(tools.runner.calls_for("probe")) == 1


def test_unparsable_container_duration_uses_stream(make_tools, tmp_path: Path) -> None:
    tools = make_tools(format_duration="N/A", stream_duration="9.5")

    estimate = probe_duration(tools, tmp_path / "video.webm")

    assert estimate == DurationEstimate(9.5, DurationSource.STREAM)
    stream_call = tools.runner.calls_for("probe")[1]
    assert stream_call[stream_call.index("-select_streams") + 1] == "v:0"


@pytest.mark.parametrize("stream_duration", ["N/A", "", None, "0"])
def test_falls_back_to_default(make_tools, tmp_path: Path, stream_duration) -> None:
    tools = make_tools(format_duration=None, stream_duration=stream_duration)

    estimate = probe_duration(tools, tmp_path / "video.webm")

    assert estimate.seconds == 5.0
    assert estimate.source is DurationSource.DEFAULT


def test_duration_estimate_must_be_positive() -> None:
    with pytest.raises(ValueError):
        DurationEstimate(0.0, DurationSource.DEFAULT)


def test_has_audio_stream(make_tools, tmp_path: Path) -> None:
    assert has_audio_stream(make_tools(audio_codec="opus"), tmp_path / "video.webm")
    assert not has_audio_stream(make_tools(audio_codec=None), tmp_path / "video.webm")


def test_sanitize_copies_streams(make_tools, tmp_path: Path) -> None:
    tools = make_tools()
    raw = tmp_path / "recording.webm"
    raw.write_bytes(b"webm-bytes")

    output = sanitize_recording(tools, raw, tmp_path / "recording-fixed.webm")

    assert output.read_bytes() == b"webm-bytes"
    call = tools.runner.calls_for("sanitize")[0]
    assert call[call.index("-c") + 1] == "copy"


def test_sanitize_rejects_empty_upload_without_running_ffmpeg(make_tools, tmp_path: Path) -> None:
    tools = make_tools()
    raw = tmp_path / "recording.webm"
    raw.write_bytes(b"")

    with pytest.raises(SanitizationFailed):
        sanitize_recording(tools, raw, tmp_path / "recording-fixed.webm")

    assert tools.runner.calls == []


def test_sanitize_failure_is_fatal(make_tools, tmp_path: Path) -> None:
    tools = make_tools(fail={"sanitize"})
    raw = tmp_path / "recording.webm"
    raw.write_bytes(b"garbage")

    with pytest.raises(SanitizationFailed, match="sanitizing"):
        sanitize_recording(tools, raw, tmp_path / "recording-fixed.webm")
