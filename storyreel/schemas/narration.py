"""
Narration inputs and caption timeline records.

NarrationRequest is handed over by the outer surface (CLI) and never mutated.
Sentence / CaptionCue / CaptionTrack are produced by renderer.captions:

  - Sentence.char_length is the length of the matched span *before* trimming,
    so inter-sentence whitespace counts toward the proportional time share.
  - CaptionTrack cues are contiguous (end of cue n == start of cue n+1),
    1-based and strictly increasing by index.

All durations are in seconds (float).
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NarrationRequest(BaseModel):
    """
    One narration job. Immutable once handed to the pipeline.

    source_url: optional locator for the text source. When set, the fetched
    title replaces an empty title and the fetched body is used only when
    body_text is empty (an explicit script always wins).
    """
    model_config = ConfigDict(frozen=True)

    title: str = ""
    body_text: str = ""
    voice_selector: str = "female-calm"
    background_selector: str = "abstract"
    max_duration_seconds: Optional[float] = Field(default=None, gt=0)
    source_url: Optional[str] = None


class Sentence(BaseModel):
    """A sentence-like span of the narration, in original order."""
    text: str
    char_length: int = Field(gt=0)


class CaptionCue(BaseModel):
    """One caption: text plus its display window."""
    index: int = Field(ge=1)
    start_seconds: float = Field(ge=0)
    end_seconds: float = Field(ge=0)
    text: str

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "CaptionCue":
        if self.end_seconds < self.start_seconds:
            raise ValueError(
                f"cue {self.index}: end_seconds ({self.end_seconds}) "
                f"precedes start_seconds ({self.start_seconds})"
            )
        return self

    @property
    def duration_seconds(self) -> float:
        return self.end_seconds - self.start_seconds


class CaptionTrack(BaseModel):
    """
    Ordered cues plus the audio duration they were allocated against.

    Cues past the end of the audio collapse to zero-width windows at
    total_duration_seconds; they are kept so the cue count always equals the
    sentence count.
    """
    cues: list[CaptionCue] = Field(default_factory=list)
    total_duration_seconds: float = Field(ge=0)

    @model_validator(mode="after")
    def _contiguous(self) -> "CaptionTrack":
        if self.cues and self.cues[0].index != 1:
            raise ValueError(f"first cue index must be 1, got {self.cues[0].index}")
        for prev, cue in zip(self.cues, self.cues[1:]):
            if cue.index != prev.index + 1:
                raise ValueError(
                    f"cue indices must increase by one: {prev.index} -> {cue.index}"
                )
            if cue.start_seconds != prev.end_seconds:
                raise ValueError(
                    f"cue {cue.index} starts at {cue.start_seconds}, "
                    f"previous cue ends at {prev.end_seconds}"
                )
        if self.cues and self.cues[-1].end_seconds > self.total_duration_seconds:
            raise ValueError("last cue ends after the audio")
        return self

    @property
    def allocated_seconds(self) -> float:
        return sum(c.duration_seconds for c in self.cues)


class AudioAsset(BaseModel):
    """Narration audio on disk and its measured duration (0.0 when unknown)."""
    model_config = ConfigDict(frozen=True)

    file_path: Path
    duration_seconds: float = Field(default=0.0, ge=0)
