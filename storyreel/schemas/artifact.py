"""
GeneratedArtifact and PipelineState.

One artifact set per request, rooted in its own working directory named after
a fresh UUID:

  <output_root>/<id>/voice.mp3
  <output_root>/<id>/captions.srt
  <output_root>/<id>/video.mp4

The files persist after the pipeline finishes and are never rewritten;
lifecycle (expiry, deletion) belongs to whoever serves them.
"""
from __future__ import annotations

import uuid
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

AUDIO_FILENAME = "voice.mp3"
CAPTIONS_FILENAME = "captions.srt"
VIDEO_FILENAME = "video.mp4"


class PipelineState(str, Enum):
    PENDING = "pending"
    TEXT_ACQUIRED = "text_acquired"
    AUDIO_SYNTHESIZED = "audio_synthesized"
    DURATION_MEASURED = "duration_measured"
    CAPTIONS_BUILT = "captions_built"
    RENDER_PLANNED = "render_planned"
    VIDEO_COMPOSED = "video_composed"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.COMPLETE, PipelineState.FAILED)


# Linear order of the non-failed states; FAILED is reachable from any
# non-terminal state.
STATE_ORDER: tuple[PipelineState, ...] = (
    PipelineState.PENDING,
    PipelineState.TEXT_ACQUIRED,
    PipelineState.AUDIO_SYNTHESIZED,
    PipelineState.DURATION_MEASURED,
    PipelineState.CAPTIONS_BUILT,
    PipelineState.RENDER_PLANNED,
    PipelineState.VIDEO_COMPOSED,
    PipelineState.COMPLETE,
)


class GeneratedArtifact(BaseModel):
    """Paths of the three files produced for one request."""
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    work_dir: Path
    audio_path: Path
    caption_path: Path
    video_path: Path

    @classmethod
    def allocate(cls, output_root: Path) -> "GeneratedArtifact":
        """Reserve a fresh working directory; never reuses an existing one."""
        artifact_id = uuid.uuid4()
        work_dir = Path(output_root) / str(artifact_id)
        work_dir.mkdir(parents=True, exist_ok=False)
        return cls(
            id=artifact_id,
            work_dir=work_dir,
            audio_path=work_dir / AUDIO_FILENAME,
            caption_path=work_dir / CAPTIONS_FILENAME,
            video_path=work_dir / VIDEO_FILENAME,
        )

    def urls(self, base_url: str) -> dict[str, str]:
        """Public URLs, assuming <output_root> is served at {base_url}/outputs."""
        prefix = f"{base_url.rstrip('/')}/outputs/{self.id}"
        return {
            "id": str(self.id),
            "downloadUrl": f"{prefix}/{self.video_path.name}",
            "srtUrl": f"{prefix}/{self.caption_path.name}",
            "audioUrl": f"{prefix}/{self.audio_path.name}",
        }


class StateTransition(BaseModel):
    """One entry of PipelineRun.history."""
    state: PipelineState
    detail: str = ""


class RunSummary(BaseModel):
    """Serializable outcome of one pipeline run (CLI output)."""
    request_id: str
    state: PipelineState
    history: list[StateTransition] = Field(default_factory=list)
    artifact: Optional[GeneratedArtifact] = None
    urls: dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = None
