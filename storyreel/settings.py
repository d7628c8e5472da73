"""
Runtime configuration.

Settings are loaded from STORYREEL_* environment variables and an optional
.env file. Engine binaries and asset locations are read here once and then
passed explicitly into the prober / composer / duration probe; no module
reads them as globals.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .renderer.plan_builder import BACKGROUND_CLIPS

# Tried in order; the first file that exists and loads as a font wins.
# <assets_dir>/fonts/* entries are prepended at probe time.
DEFAULT_FONT_CANDIDATES: list[str] = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/Library/Fonts/Arial.ttf",
    "/System/Library/Fonts/Supplemental/Arial.ttf",
    "C:/Windows/Fonts/arial.ttf",
]


class Settings(BaseSettings):
    """
    Application settings.

    Every field can be overridden with STORYREEL_<FIELD_NAME>, e.g.
    STORYREEL_OUTPUT_ROOT=/srv/reels.
    """

    model_config = SettingsConfigDict(
        env_prefix="STORYREEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    output_root: Path = Field(default=Path("outputs"), description="Per-request working directories live here")
    assets_dir: Path = Field(default=Path("assets"), description="Holds bg/<name>.mp4 and fonts/")

    # Rendering engine
    ffmpeg_binary: str = Field(default="ffmpeg")
    ffprobe_binary: str = Field(default="ffprobe")
    ffmpeg_timeout_seconds: int = Field(default=600, gt=0)
    probe_timeout_seconds: int = Field(default=15, gt=0)
    font_candidates: list[str] = Field(default_factory=lambda: list(DEFAULT_FONT_CANDIDATES))
    solid_color: str = Field(default="0x1a1a2e", description="Colour of the generated fallback background")

    # Request defaults
    default_title: str = Field(default="Story Reel")
    default_background: str = Field(default="abstract")
    base_url: str = Field(default="http://localhost:3000")

    # Speech provider
    elevenlabs_api_key: str = Field(default="")
    elevenlabs_api_base: str = Field(default="https://api.elevenlabs.io")
    elevenlabs_model_id: str = Field(default="eleven_multilingual_v2")
    http_timeout_seconds: float = Field(default=60.0, gt=0)

    # Text source
    reddit_user_agent: str = Field(default="storyreel/0.1")

    log_level: str = Field(default="INFO")

    @field_validator("default_background")
    @classmethod
    def _known_background(cls, v: str) -> str:
        key = v.strip().lower()
        if key not in BACKGROUND_CLIPS:
            raise ValueError(f"default_background must be one of {sorted(BACKGROUND_CLIPS)}, got {v!r}")
        return key

    @property
    def backgrounds_dir(self) -> Path:
        return self.assets_dir / "bg"

    @property
    def fonts_dir(self) -> Path:
        return self.assets_dir / "fonts"


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return Settings()
