"""
Render-time capability probing.

Answers three questions for one render, fresh every time:
  - is there a usable background clip for the requested selector?
  - is there a font file that actually loads?
  - do ffmpeg's drawtext and subtitles filters work with that font?

The prober never raises. "Could not confirm it works" and "confirmed absent"
both yield False, which pushes the plan builder to its fallbacks (solid colour
background, no overlay).
"""
from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Iterable, Optional, Sequence

from PIL import ImageFont

from ..schemas.render_plan import CapabilityReport
from ..settings import Settings
from .ffmpeg_runner import FFmpegError, FFmpegNotFound, run_ffmpeg
from .filter_graph import DrawText, Subtitles
from .plan_builder import background_clip_path, is_solid_selector

logger = logging.getLogger(__name__)

# stderr fragments meaning drawtext or subtitles (or their freetype, fontconfig
# or libass backends) are unusable even though ffmpeg may still have exited 0.
OVERLAY_FAILURE_SIGNATURES: tuple[str, ...] = (
    "No such filter",
    "Filter not found",
    "Cannot find a valid font",
    "Could not load font",
    "Error initializing filter",
    "Cannot load default config file",
    "Unable to open",
    "Error opening memory font",
)

_TRIAL_SRT = "1\n00:00:00,000 --> 00:00:01,000\nAg\n"

_FONT_SUFFIXES = (".ttf", ".otf", ".ttc")


class CapabilityProber:
    """
    Probe the local environment for optional rendering features.

    Usage::

        prober = CapabilityProber.from_settings(get_settings())
        report = prober.probe("gaming")
    """

    def __init__(
        self,
        backgrounds_dir: Path,
        font_candidates: Sequence[str],
        ffmpeg_binary: str = "ffmpeg",
        timeout: int = 15,
        default_background: str = "abstract",
        fonts_dir: Optional[Path] = None,
    ) -> None:
        self.backgrounds_dir = Path(backgrounds_dir)
        self.font_candidates = list(font_candidates)
        self.ffmpeg_binary = ffmpeg_binary
        self.timeout = timeout
        self.default_background = default_background
        self.fonts_dir = Path(fonts_dir) if fonts_dir else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CapabilityProber":
        return cls(
            backgrounds_dir=settings.backgrounds_dir,
            font_candidates=settings.font_candidates,
            ffmpeg_binary=settings.ffmpeg_binary,
            timeout=settings.probe_timeout_seconds,
            default_background=settings.default_background,
            fonts_dir=settings.fonts_dir,
        )

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def probe(self, background_selector: str) -> CapabilityReport:
        background = self.find_background(background_selector)
        font = self.find_font()
        # The trial render is skipped when there is no font to draw with.
        overlay = self.overlay_supported(font) if font is not None else False

        report = CapabilityReport(
            has_usable_font=font is not None,
            has_usable_background=background is not None,
            supports_text_overlay=overlay,
            font_path=font,
            background_path=background,
        )
        logger.info(
            "Capabilities | background=%s | font=%s | overlay=%s",
            background or "-",
            font or "-",
            overlay,
        )
        return report

    def find_background(self, selector: str) -> Optional[Path]:
        """Path of the named clip for *selector*, or None if unusable."""
        if is_solid_selector(selector):
            return None
        try:
            path = background_clip_path(self.backgrounds_dir, selector, self.default_background)
            if path.is_file() and path.stat().st_size > 0:
                return path
        except (OSError, ValueError) as exc:
            logger.warning("Background for %r not usable: %s", selector, exc)
            return None
        logger.warning("Background clip %s missing, using solid colour.", path)
        return None

    def find_font(self) -> Optional[Path]:
        """First candidate font that exists and loads, or None."""
        for candidate in self._font_candidates():
            path = Path(candidate)
            if not path.is_file():
                continue
            if _font_loads(path):
                return path
        logger.warning("No usable font found, title and captions will not be drawn.")
        return None

    def overlay_supported(self, font: Path) -> bool:
        """
        Trial-render one tiny frame through drawtext and subtitles.

        Both filters go through the same graph the real render uses, so a
        build with freetype but no libass is reported as unsupported.
        False on any sign of trouble, including an unusable temp directory.
        """
        try:
            with tempfile.TemporaryDirectory(prefix="storyreel-probe-", ignore_cleanup_errors=True) as tmp:
                srt = Path(tmp) / "trial.srt"
                srt.write_text(_TRIAL_SRT, encoding="utf-8")
                trial = Path(tmp) / "trial.png"
                vf = ",".join([
                    DrawText(text="Ag", fontfile=str(font), fontsize=16, x="0", y=0, shadow=0).render(),
                    Subtitles(filename=str(srt), fontsdir=str(font.parent)).render(),
                ])
                cmd = [
                    self.ffmpeg_binary, "-hide_banner", "-y",
                    "-f", "lavfi", "-i", "color=c=black:s=64x64:d=0.1",
                    "-vf", vf,
                    "-frames:v", "1",
                    str(trial),
                ]
                stderr = run_ffmpeg(cmd, timeout=self.timeout)
        except (FFmpegError, FFmpegNotFound, TimeoutError, OSError, UnicodeError) as exc:
            logger.debug("overlay trial failed: %s", exc)
            return False

        for signature in OVERLAY_FAILURE_SIGNATURES:
            if signature in stderr:
                logger.debug("overlay trial stderr contains %r", signature)
                return False
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _font_candidates(self) -> Iterable[str]:
        if self.fonts_dir is not None and self.fonts_dir.is_dir():
            try:
                bundled = sorted(self.fonts_dir.iterdir())
            except OSError as exc:
                logger.debug("Cannot list %s: %s", self.fonts_dir, exc)
                bundled = []
            for path in bundled:
                if path.suffix.lower() in _FONT_SUFFIXES:
                    yield str(path)
        yield from self.font_candidates


def _font_loads(path: Path) -> bool:
    """True when Pillow/FreeType can open *path* as a font."""
    try:
        ImageFont.truetype(str(path), size=12)
    except (OSError, ValueError) as exc:
        logger.debug("Font %s does not load: %s", path, exc)
        return False
    return True
