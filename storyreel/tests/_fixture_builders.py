"""Fake collaborators shared by the orchestrator, composer and CLI tests."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from storyreel.errors import RenderError, SynthesisError
from storyreel.pipeline.text_source import FetchedText
from storyreel.schemas.narration import AudioAsset
from storyreel.schemas.render_plan import CapabilityReport, RenderPlan

FAKE_MP3 = b"ID3\x04\x00\x00\x00\x00\x00\x00fake-mp3-frames"
FONT_PATH = Path("/fonts/DejaVuSans-Bold.ttf")


def full_capabilities(background: Optional[Path] = None) -> CapabilityReport:
    """Font + working drawtext; background usable when a path is given."""
    return CapabilityReport(
        has_usable_font=True,
        has_usable_background=background is not None,
        supports_text_overlay=True,
        font_path=FONT_PATH,
        background_path=background,
    )


def bare_capabilities() -> CapabilityReport:
    return CapabilityReport()


class FakeTextSource:
    def __init__(self, fetched: Optional[FetchedText] = None) -> None:
        self.fetched = fetched or FetchedText()
        self.calls: list[str] = []

    def fetch(self, locator: str) -> FetchedText:
        self.calls.append(locator)
        return self.fetched


class FakeSynthesizer:
    def __init__(self, audio: bytes = FAKE_MP3, error: Optional[str] = None) -> None:
        self.audio = audio
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def synthesize(self, text: str, voice_selector: str) -> bytes:
        self.calls.append((text, voice_selector))
        if self.error is not None:
            raise SynthesisError(self.error)
        return self.audio


class FakeDurationProbe:
    def __init__(self, seconds: float = 10.0) -> None:
        self.seconds = seconds
        self.calls: list[Path] = []

    def __call__(self, audio_path: Path) -> float:
        self.calls.append(Path(audio_path))
        return self.seconds


class FakeProber:
    def __init__(self, report: Optional[CapabilityReport] = None) -> None:
        self.report = report or bare_capabilities()
        self.calls: list[str] = []

    def probe(self, background_selector: str) -> CapabilityReport:
        self.calls.append(background_selector)
        return self.report


class FakeEngine:
    """
    RenderEngine double. Writes a small file on success; with *fail_with*
    set, writes a partial file and raises RenderError.
    """

    def __init__(self, fail_with: Optional[str] = None) -> None:
        self.fail_with = fail_with
        self.calls: list[tuple[RenderPlan, AudioAsset, Path]] = []

    def render(self, plan: RenderPlan, audio: AudioAsset, output_path: Path) -> Path:
        self.calls.append((plan, audio, Path(output_path)))
        Path(output_path).write_bytes(b"\x00\x00\x00\x18ftypmp42")
        if self.fail_with is not None:
            raise RenderError("ffmpeg exited 1", diagnostics=self.fail_with)
        return Path(output_path)
