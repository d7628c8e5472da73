"""
Sentence segmentation, caption timing and SRT output.

Timing rules:
  - Each sentence gets a share of the audio proportional to its character
    length (untrimmed span, so inter-sentence whitespace counts).
  - Minimum caption display time: 1.2 s, even if the floors add up to more
    than the audio. Cue ends are clamped to the audio duration, so once the
    cursor reaches the end every later cue is a zero-width window there.
  - Cues are contiguous: each cue starts where the previous one ended.

Output: standard SRT (SubRip Text), UTF-8. Timestamps are floored to whole
milliseconds.
"""
from __future__ import annotations

import logging
import math
import re
from pathlib import Path
from typing import Sequence

from ..schemas.narration import CaptionCue, CaptionTrack, Sentence

logger = logging.getLogger(__name__)

MIN_CUE_SECONDS: float = 1.2
_END_SNAP_SECONDS: float = 1e-9

# Sentence-final punctuation: ASCII, full-width / CJK variants, ellipsis.
_TERMINALS = ".!?。！？．…"
# Leading terminals only match at the very start of the text (e.g. "...so").
_SENTENCE_RE = re.compile(rf"[{_TERMINALS}]*[^{_TERMINALS}]+[{_TERMINALS}]*")
_LINE_BREAKS_RE = re.compile(r"[\r\n]+")


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------

def segment(text: str) -> list[Sentence]:
    """
    Split narration text into sentence-like spans, in order.

    Never returns an empty list: text without any usable span becomes a
    single sentence (the trimmed text, or the original text when it is blank).
    """
    normalized = _LINE_BREAKS_RE.sub(" ", text)
    sentences = [
        Sentence(text=span.strip(), char_length=len(span))
        for span in _SENTENCE_RE.findall(normalized)
        if span.strip()
    ]
    if sentences:
        return sentences

    stripped = normalized.strip()
    if stripped:
        # Punctuation only, e.g. "?!" or "...".
        return [Sentence(text=stripped, char_length=len(stripped))]
    return [Sentence(text=text, char_length=max(1, len(text)))]


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------

def build_timeline(
    sentences: Sequence[Sentence],
    total_duration_seconds: float,
) -> CaptionTrack:
    """
    Allocate a display window to every sentence.

    Args:
        sentences:              Output of segment().
        total_duration_seconds: Measured narration duration; negative values
                                are treated as 0.

    Returns:
        CaptionTrack with exactly len(sentences) cues.
    """
    total = max(0.0, float(total_duration_seconds))
    total_chars = max(1, sum(s.char_length for s in sentences))

    cues: list[CaptionCue] = []
    cursor = 0.0
    for idx, sentence in enumerate(sentences, start=1):
        raw_share = total * (sentence.char_length / total_chars)
        end = min(total, cursor + max(MIN_CUE_SECONDS, raw_share))
        if total - end < _END_SNAP_SECONDS:
            end = total
        cues.append(
            CaptionCue(index=idx, start_seconds=cursor, end_seconds=end, text=sentence.text)
        )
        cursor = end

    collapsed = sum(1 for c in cues if c.duration_seconds == 0)
    if collapsed:
        logger.debug(
            "%d of %d cues collapsed to zero width (%.3fs of audio)",
            collapsed, len(cues), total,
        )
    return CaptionTrack(cues=cues, total_duration_seconds=total)


def build_captions(text: str, total_duration_seconds: float) -> CaptionTrack:
    """segment() then build_timeline()."""
    return build_timeline(segment(text), total_duration_seconds)


# ---------------------------------------------------------------------------
# SRT
# ---------------------------------------------------------------------------

def build_srt(track: CaptionTrack) -> str:
    """
    Serialize a CaptionTrack as SRT.

    Each cue is "index / timing line / text" followed by one blank line
    separating it from the next cue; the file ends with a single newline.
    Returns "" for a track with no cues.
    """
    blocks = [
        f"{cue.index}\n"
        f"{_seconds_to_srt(cue.start_seconds)} --> {_seconds_to_srt(cue.end_seconds)}\n"
        f"{cue.text}"
        for cue in track.cues
    ]
    if not blocks:
        return ""
    return "\n\n".join(blocks) + "\n"


def write_srt(track: CaptionTrack, output_path: Path) -> Path:
    """
    Write the .srt file for *track* to *output_path*.

    Always writes the file (even if empty) so a caption path can be reported
    for every completed request.

    Returns:
        *output_path* (for chaining).
    """
    content = build_srt(track)
    output_path = Path(output_path)
    output_path.write_text(content, encoding="utf-8")
    logger.info(
        "Wrote captions: %s (%d bytes, %d cues)",
        output_path,
        len(content.encode("utf-8")),
        len(track.cues),
    )
    return output_path


def _seconds_to_srt(seconds: float) -> str:
    """Convert seconds to SRT timestamp format: HH:MM:SS,mmm."""
    ms = max(0, math.floor(seconds * 1000))
    hours, remainder = divmod(ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1_000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"
