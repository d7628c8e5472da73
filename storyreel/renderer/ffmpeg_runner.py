"""
Minimal ffmpeg / ffprobe runner.

Every call takes the binary path explicitly (from Settings); nothing here
reads global configuration. Commands run synchronously in their own process
group so a timeout can kill the whole tree.
"""
from __future__ import annotations

import logging
import os
import re
import signal
import subprocess

logger = logging.getLogger(__name__)

# Minimum supported ffmpeg version (MAJOR.MINOR). Older builds usually work
# but lack some drawtext/libass fixes.
FFMPEG_MIN_VERSION = "4.4"

_STDERR_TAIL_CHARS = 3000


class FFmpegError(Exception):
    """ffmpeg (or ffprobe) exited with a non-zero return code."""

    def __init__(self, message: str, returncode: int, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class FFmpegNotFound(Exception):
    """The configured ffmpeg / ffprobe binary is not available."""


_VERSION_LINE_RE = re.compile(r"^\S+ version (\S+)")
_MAJOR_MINOR_RE = re.compile(r"n?(\d+)\.(\d+)")


# ---------------------------------------------------------------------------
# Version helpers
# ---------------------------------------------------------------------------

def get_ffmpeg_version(binary: str = "ffmpeg") -> str:
    """
    Version token from `<binary> -version` (e.g. "6.1.1", "n7.0").

    Falls back to the whole first output line when it is not in the usual
    "ffmpeg version X ..." form.

    Raises:
        FFmpegNotFound: if the binary is missing or does not answer.
    """
    try:
        result = subprocess.run([binary, "-version"], capture_output=True, text=True, timeout=10)
    except FileNotFoundError:
        raise FFmpegNotFound(f"{binary} not found. Install ffmpeg >= {FFMPEG_MIN_VERSION}.")
    except subprocess.TimeoutExpired:
        raise FFmpegNotFound(f"{binary} -version did not answer within 10s")
    if result.returncode != 0:
        raise FFmpegNotFound(f"{binary} -version exited {result.returncode}")

    first_line = next(iter(result.stdout.splitlines()), "")
    m = _VERSION_LINE_RE.match(first_line)
    return m.group(1) if m else first_line


def validate_ffmpeg(binary: str = "ffmpeg") -> str:
    """Return the ffmpeg version; logs a warning below FFMPEG_MIN_VERSION."""
    version = get_ffmpeg_version(binary)
    m = _MAJOR_MINOR_RE.match(version)
    minimum = tuple(int(x) for x in FFMPEG_MIN_VERSION.split("."))
    if m and (int(m.group(1)), int(m.group(2))) < minimum:
        logger.warning("ffmpeg %s is older than %s; drawtext/libass may misbehave.", version, FFMPEG_MIN_VERSION)
    return version


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

def run_ffmpeg(cmd: list[str], timeout: int = 600) -> str:
    """
    Run an ffmpeg/ffprobe command synchronously in its own process group.

    Args:
        cmd:     Complete command as a list of strings (binary first).
        timeout: Maximum wall-clock seconds to allow.

    Returns:
        The full stderr text (ffmpeg writes its diagnostics there even on
        success).

    Raises:
        FFmpegNotFound: if the binary is missing.
        FFmpegError:    on a non-zero exit; .stderr holds the tail verbatim.
        TimeoutError:   if the command exceeds *timeout* seconds.
    """
    logger.debug("ffmpeg cmd: %s", " ".join(cmd[:10]) + (" ..." if len(cmd) > 10 else ""))

    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            preexec_fn=os.setsid,  # own process group → clean kill on timeout
        )
    except FileNotFoundError:
        raise FFmpegNotFound(
            f"{cmd[0]} not found. Install ffmpeg >= {FFMPEG_MIN_VERSION}."
        )

    try:
        _, stderr = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_group(process)
        process.communicate()
        raise TimeoutError(
            f"{cmd[0]} exceeded timeout of {timeout}s and was killed. "
            f"Command: {' '.join(cmd[:6])} ..."
        )

    if process.returncode != 0:
        tail = stderr[-_STDERR_TAIL_CHARS:]
        raise FFmpegError(
            f"{cmd[0]} exited {process.returncode}.\n"
            f"Command: {' '.join(cmd[:8])} ...\n"
            f"stderr (last {_STDERR_TAIL_CHARS} chars):\n{tail}",
            returncode=process.returncode,
            stderr=tail,
        )

    logger.debug("%s finished OK (rc=0)", cmd[0])
    return stderr


def run_ffprobe(cmd: list[str], timeout: int = 30) -> str:
    """Run ffprobe and return its stdout. Same error contract as run_ffmpeg()."""
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError:
        raise FFmpegNotFound(f"{cmd[0]} not found. Install ffmpeg (ships ffprobe).")
    except subprocess.TimeoutExpired:
        raise TimeoutError(f"{cmd[0]} exceeded timeout of {timeout}s.")

    if result.returncode != 0:
        tail = result.stderr[-_STDERR_TAIL_CHARS:]
        raise FFmpegError(
            f"{cmd[0]} exited {result.returncode}: {tail.strip()}",
            returncode=result.returncode,
            stderr=tail,
        )
    return result.stdout


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _kill_group(process: subprocess.Popen) -> None:
    """Kill the process and its entire process group (SIGKILL)."""
    try:
        os.killpg(os.getpgid(process.pid), signal.SIGKILL)
    except ProcessLookupError:
        pass  # already dead
    except OSError as exc:
        logger.warning("Could not kill ffmpeg process group: %s", exc)
        process.kill()
