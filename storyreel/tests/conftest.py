"""
Shared pytest fixtures for storyreel/tests/.

Provides:
  - settings: Settings rooted in tmp_path (no fonts, no background clips)
  - assets_dir: tmp assets tree with empty bg/ and fonts/ directories
  - pipeline factory wired with fake collaborators
  - require_ffmpeg: skip-marker for tests that need the ffmpeg binary
"""
from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from storyreel.pipeline.orchestrator import NarrationPipeline
from storyreel.renderer.composer import MediaComposer
from storyreel.renderer.ffmpeg_runner import FFmpegNotFound, validate_ffmpeg
from storyreel.settings import Settings

from ._fixture_builders import (
    FakeDurationProbe,
    FakeEngine,
    FakeProber,
    FakeSynthesizer,
    FakeTextSource,
)


@pytest.fixture()
def assets_dir(tmp_path: Path) -> Path:
    root = tmp_path / "assets"
    (root / "bg").mkdir(parents=True)
    (root / "fonts").mkdir()
    return root


@pytest.fixture()
def settings(tmp_path: Path, assets_dir: Path) -> Settings:
    return Settings(
        output_root=tmp_path / "outputs",
        assets_dir=assets_dir,
        font_candidates=[],
        base_url="https://reels.example.com",
        elevenlabs_api_key="test-key",
    )


@pytest.fixture()
def make_pipeline(settings: Settings):
    """Factory: NarrationPipeline with fakes; override any collaborator by keyword."""

    def _make(**overrides) -> NarrationPipeline:
        parts = dict(
            settings=settings,
            text_source=FakeTextSource(),
            synthesizer=FakeSynthesizer(),
            duration_probe=FakeDurationProbe(),
            prober=FakeProber(),
            composer=MediaComposer(FakeEngine()),
        )
        parts.update(overrides)
        return NarrationPipeline(**parts)

    return _make


# ---------------------------------------------------------------------------
# FFmpeg availability check
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def require_ffmpeg():
    """Skip the test if ffmpeg/ffprobe are not available on PATH."""
    if shutil.which("ffprobe") is None:
        pytest.skip("ffprobe not available, skipping render test.")
    try:
        validate_ffmpeg()
    except FFmpegNotFound:
        pytest.skip("ffmpeg not available, skipping render test.")
