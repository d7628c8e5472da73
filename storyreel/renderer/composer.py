"""
Media composer.

Executes a RenderPlan: background (named clip or generated solid colour) as
input 0, narration audio as input 1, the plan's filter graph, the plan's
output options, one output file.

The engine sits behind a one-method protocol (RenderEngine.render) so the
pipeline never sees process-spawning details; FFmpegEngine is the production
implementation. A failed render is terminal: no retries, and any partial
output file is deleted so it can never be reported as an artifact.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from ..errors import RenderError
from ..schemas.narration import AudioAsset
from ..schemas.render_plan import RenderPlan, VideoSourceKind
from ..settings import Settings
from .ffmpeg_runner import FFmpegError, FFmpegNotFound, run_ffmpeg

logger = logging.getLogger(__name__)


class RenderEngine(Protocol):
    def render(self, plan: RenderPlan, audio: AudioAsset, output_path: Path) -> Path:
        """Produce *output_path* or raise RenderError."""
        ...


class FFmpegEngine:
    """RenderEngine backed by the ffmpeg command-line tool."""

    def __init__(self, ffmpeg_binary: str = "ffmpeg", timeout: int = 600) -> None:
        self.ffmpeg_binary = ffmpeg_binary
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "FFmpegEngine":
        return cls(ffmpeg_binary=settings.ffmpeg_binary, timeout=settings.ffmpeg_timeout_seconds)

    def build_command(self, plan: RenderPlan, audio: AudioAsset, output_path: Path) -> list[str]:
        cmd: list[str] = [self.ffmpeg_binary, "-hide_banner", "-y"]

        # --- Input 0: video source ---
        if plan.video_source_kind is VideoSourceKind.NAMED_BACKGROUND_CLIP:
            if plan.background_path is None:
                raise RenderError("plan selects a named background clip but has no background_path")
            # Loop the clip; -shortest ends the output with the narration.
            cmd += ["-stream_loop", "-1", "-i", str(plan.background_path)]
        else:
            res = plan.resolution
            cmd += [
                "-f", "lavfi",
                "-i", f"color=c={plan.solid_color}:s={res.width}x{res.height}:r={plan.fps}",
            ]

        # --- Input 1: narration ---
        cmd += ["-i", str(audio.file_path)]

        cmd += ["-filter_complex", plan.filter_graph]
        cmd += list(plan.output_options)
        cmd.append(str(output_path))
        return cmd

    def render(self, plan: RenderPlan, audio: AudioAsset, output_path: Path) -> Path:
        cmd = self.build_command(plan, audio, output_path)
        try:
            run_ffmpeg(cmd, timeout=self.timeout)
        except FFmpegError as exc:
            raise RenderError(f"ffmpeg exited {exc.returncode}", diagnostics=exc.stderr) from exc
        except (FFmpegNotFound, TimeoutError) as exc:
            raise RenderError(str(exc), diagnostics=str(exc)) from exc
        return output_path


class MediaComposer:
    """
    Runs one composition job against a RenderEngine.

    Usage::

        composer = MediaComposer(FFmpegEngine.from_settings(settings))
        video = composer.compose(plan, audio, caption_path, work_dir / "video.mp4")
    """

    def __init__(self, engine: RenderEngine) -> None:
        self.engine = engine

    def compose(
        self,
        plan: RenderPlan,
        audio: AudioAsset,
        caption_file: Path,
        output_path: Path,
    ) -> Path:
        """
        Render *plan* over *audio* into *output_path*.

        Raises:
            RenderError: on any engine failure or missing input; diagnostics
                         carry the engine output verbatim.
        """
        output_path = Path(output_path)
        if not Path(audio.file_path).is_file():
            raise RenderError(f"narration audio not found: {audio.file_path}")
        if plan.burns_captions and not Path(caption_file).is_file():
            raise RenderError(f"caption file not found: {caption_file}")

        logger.info(
            "Composing %s | source=%s | overlay=%s | audio=%.2fs",
            output_path.name,
            plan.video_source_kind.value,
            plan.overlay_kind.value,
            audio.duration_seconds,
        )
        try:
            result = self.engine.render(plan, audio, output_path)
        except Exception:
            _discard_partial(output_path)
            raise

        if not Path(result).is_file():
            raise RenderError(f"engine reported success but {result} was not written")
        logger.info("Composition complete → %s", result)
        return Path(result)


def _discard_partial(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove partial output %s: %s", path, exc)
