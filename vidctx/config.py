"""Global configuration using Pydantic settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Literal, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pipeline settings loaded from environment variables."""

    base_dir: Path = Field(default_factory=lambda: Path("sessions"))
    session_prefix: str = "capture"

    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    process_timeout: float = 120.0

    transcription_backend: str = "openai"
    openai_api_key: Optional[str] = None
    openai_transcription_model: str = "gpt-4o-audio-preview"
    transcription_max_attempts: int = 3
    transcription_backoff_seconds: float = 1.0

    frame_timestamps: Optional[List[float]] = None
    frame_interval: float = 3.0
    frame_start_offset: float = 1.5
    max_frames: int = 6
    skip_failed_frames: bool = False
    frame_reference: Literal["inline", "path"] = "inline"
    default_duration: float = 5.0

    audio_sample_rate: int = 16_000
    audio_gain: float = 10.0
    silence_noise_db: float = -30.0
    silence_min_duration: float = 0.5
    silent_peak_db: float = -60.0
    max_silence_intervals: int = 3

    max_recording_seconds: int = 30
    server_host: str = "127.0.0.1"
    server_port: int = 8765
    open_browser: bool = True
    capture_page_dir: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_prefix="VIDCTX_",
        env_file=".env",
        case_sensitive=False,
    )

    @field_validator("max_frames", "transcription_max_attempts")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @field_validator("frame_interval", "default_duration")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    def timestamp_policy(self):
        """Return the frame timestamp policy selected by these settings."""

        from .core.media.frames import FixedTimestamps, IntervalTimestamps

        if self.frame_timestamps:
            return FixedTimestamps(self.frame_timestamps)
        return IntervalTimestamps(interval=self.frame_interval, offset=self.frame_start_offset)


_settings: Optional[Settings] = None


_MODEL_CONFIG: Dict[str, Any] = dict(Settings.model_config or {})
_ENV_PREFIX: str = (_MODEL_CONFIG.get("env_prefix") or "").upper()
_CASE_SENSITIVE: bool = bool(_MODEL_CONFIG.get("case_sensitive", True))
_ENV_FILE = _MODEL_CONFIG.get("env_file") or ".env"
_ENV_PATH = Path(_ENV_FILE)


@dataclass
class EnvironmentSetting:
    """Metadata about a configuration option backed by an environment variable."""

    field: str
    env_name: str
    value: Any
    default: Any
    annotation: Any


class EnvironmentSettingError(RuntimeError):
    """Raised when environment-backed configuration updates fail."""


def _env_key(field: str) -> str:
    key = f"{_ENV_PREFIX}{field}" if _ENV_PREFIX else field
    return key if _CASE_SENSITIVE else key.upper()


def _field_default(field_info) -> Any:
    if field_info.default is not None:
        return field_info.default
    if field_info.default_factory is not None:  # type: ignore[truthy-function]
        return field_info.default_factory()
    return None


def _load_env_file() -> Iterable[str]:
    if not _ENV_PATH.exists():
        return []
    return _ENV_PATH.read_text().splitlines()


def _persist_env_value(env_name: str, value: Optional[str]) -> None:
    kept = []
    for line in _load_env_file():
        key = line.split("=", 1)[0].strip() if "=" in line else None
        if key == env_name:
            continue
        kept.append(line)
    if value is not None:
        kept.append(f"{env_name}={value}")
    _write_env_file(kept)


def _write_env_file(lines: List[str]) -> None:
    if lines:
        _ENV_PATH.write_text("\n".join(lines) + "\n")
    elif _ENV_PATH.exists():
        _ENV_PATH.unlink()


def list_environment_settings(settings: Optional[Settings] = None) -> Iterable[EnvironmentSetting]:
    """Return metadata for all environment-backed settings."""

    settings = settings or get_settings()
    for name, field in Settings.model_fields.items():
        yield EnvironmentSetting(
            field=name,
            env_name=_env_key(name),
            value=getattr(settings, name),
            default=_field_default(field),
            annotation=field.annotation,
        )


def _apply_setting_update(field: str, raw_value: Optional[str]) -> Settings:
    if field not in Settings.model_fields:
        raise EnvironmentSettingError(f"Unknown setting: {field}")

    env_name = _env_key(field)
    previous = os.environ.get(env_name)
    previous_lines = list(_load_env_file())

    if raw_value is None:
        os.environ.pop(env_name, None)
    else:
        os.environ[env_name] = raw_value
    # Settings() also reads .env, so the file has to change before reloading
    _persist_env_value(env_name, raw_value)

    try:
        new_settings = Settings()
    except ValidationError as exc:
        if previous is None:
            os.environ.pop(env_name, None)
        else:
            os.environ[env_name] = previous
        _write_env_file(previous_lines)
        raise EnvironmentSettingError(str(exc)) from exc

    global _settings
    _settings = new_settings
    return new_settings


def update_environment_setting(field: str, raw_value: str) -> Settings:
    """Update an environment setting, persist it to ``.env`` and reload configuration."""

    return _apply_setting_update(field, raw_value)


def clear_environment_setting(field: str) -> Settings:
    """Remove an environment override for the given field and reload configuration."""

    return _apply_setting_update(field, None)


def get_settings() -> Settings:
    """Return a singleton instance of the application settings."""

    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


__all__ = [
    "Settings",
    "EnvironmentSetting",
    "EnvironmentSettingError",
    "clear_environment_setting",
    "get_settings",
    "list_environment_settings",
    "update_environment_setting",
]
