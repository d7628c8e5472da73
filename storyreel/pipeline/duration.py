"""Audio duration measurement via ffprobe."""
from __future__ import annotations

import logging
import math
from pathlib import Path

from ..errors import DurationProbeError
from ..renderer.ffmpeg_runner import FFmpegError, FFmpegNotFound, run_ffprobe

logger = logging.getLogger(__name__)


def measure_duration(audio_path: Path, ffprobe_binary: str = "ffprobe", timeout: int = 30) -> float:
    """
    Return the container duration of *audio_path* in seconds.

    Unknown durations ("N/A", empty, unparsable, negative) come back as 0.0.
    Raises DurationProbeError only when ffprobe itself cannot run or rejects
    the file.
    """
    cmd = [
        ffprobe_binary, "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(audio_path),
    ]
    try:
        out = run_ffprobe(cmd, timeout=timeout)
    except (FFmpegError, FFmpegNotFound, TimeoutError) as exc:
        raise DurationProbeError(f"could not measure {Path(audio_path).name}: {exc}") from exc

    raw = out.strip().splitlines()[0].strip() if out.strip() else ""
    try:
        duration = float(raw)
    except ValueError:
        logger.warning("ffprobe reported duration %r for %s; using 0", raw, audio_path)
        return 0.0
    if not math.isfinite(duration) or duration <= 0:
        return 0.0
    return duration


class FFprobeDurationProbe:
    """Callable wrapper so the pipeline can take the probe as a collaborator."""

    def __init__(self, ffprobe_binary: str = "ffprobe", timeout: int = 30) -> None:
        self.ffprobe_binary = ffprobe_binary
        self.timeout = timeout

    def __call__(self, audio_path: Path) -> float:
        return measure_duration(audio_path, self.ffprobe_binary, self.timeout)
