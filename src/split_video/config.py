"""
App config from environment with defaults.
Uses pydantic-settings so all env vars are validated and documented in one model.
"""

from __future__ import annotations

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigValidationError
from .models import EncodeOptions


class SplitVideoSettings(BaseSettings):
    """
    Defaults for the splitter, overridable with SPLIT_VIDEO_* env vars.
    CLI flags take precedence over these values.
    """

    model_config = SettingsConfigDict(env_prefix="SPLIT_VIDEO_", extra="ignore")

    # Chunking
    gop_size: int = 30
    chunk_size: int = 120

    # Encoding, applied to every segment
    codec: str = "libx264"
    crf: int | None = 18
    preset: str | None = "slow"
    movflags: str | None = "faststart"
    default_format: str = "mp4"

    # Logging: Python side and FFmpeg side
    log_level: str = "INFO"
    av_log_level: str = "WARNING"

    @field_validator("log_level", "av_log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> str:
        if isinstance(v, str) and v.strip():
            return v.strip().upper()
        return "INFO"

    @field_validator("preset", "movflags", mode="before")
    @classmethod
    def empty_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def encode_options(self) -> EncodeOptions:
        """Encoder and muxer options; invalid values raise ConfigValidationError."""
        try:
            return EncodeOptions(
                codec=self.codec,
                crf=self.crf,
                preset=self.preset,
                movflags=self.movflags,
                default_format=self.default_format,
            )
        except ValidationError as e:
            raise ConfigValidationError(_describe(e)) from e


def _describe(e: ValidationError) -> str:
    """One line per invalid value, named by its env var."""
    parts = []
    for err in e.errors():
        field = ".".join(str(p) for p in err["loc"])
        parts.append(f"SPLIT_VIDEO_{field.upper()}: {err['msg']}" if field else err["msg"])
    return "; ".join(parts)


def get_settings() -> SplitVideoSettings:
    """Return validated settings from current environment; raises ConfigValidationError."""
    try:
        return SplitVideoSettings()
    except ValidationError as e:
        raise ConfigValidationError(_describe(e)) from e
