"""
Narration pipeline orchestrator.

One PipelineRun per request, strictly sequential:

  pending → text_acquired → audio_synthesized → duration_measured
          → captions_built → render_planned → video_composed → complete

Any stage failure moves the run to `failed` and aborts the remaining stages.
No stage is retried and nothing is cleaned up; the working directory
<output_root>/<uuid> belongs to whoever manages artifact lifecycle.

Runs share only stateless collaborators, so distinct requests may execute in
parallel threads without locks.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from ..errors import NarrationInputError, PipelineError
from ..renderer.capabilities import CapabilityProber
from ..renderer.captions import build_timeline, segment, write_srt
from ..renderer.composer import FFmpegEngine, MediaComposer
from ..renderer.plan_builder import build_plan
from ..schemas.artifact import (
    GeneratedArtifact,
    PipelineState,
    RunSummary,
    StateTransition,
)
from ..schemas.narration import AudioAsset, CaptionTrack, NarrationRequest
from ..schemas.render_plan import RenderPlan
from ..settings import Settings
from .duration import FFprobeDurationProbe
from .speech import ElevenLabsSynthesizer, SpeechSynthesizer
from .text_source import RedditTextSource, TextSource

logger = logging.getLogger(__name__)

DurationProbe = Callable[[Path], float]


class NarrationPipeline:
    """
    Wires the collaborators together; holds no per-request state.

    Usage::

        pipeline = NarrationPipeline.from_settings(get_settings())
        artifact = pipeline.run(NarrationRequest(title="...", body_text="..."))
    """

    def __init__(
        self,
        settings: Settings,
        text_source: TextSource,
        synthesizer: SpeechSynthesizer,
        duration_probe: DurationProbe,
        prober: CapabilityProber,
        composer: MediaComposer,
    ) -> None:
        self.settings = settings
        self.text_source = text_source
        self.synthesizer = synthesizer
        self.duration_probe = duration_probe
        self.prober = prober
        self.composer = composer

    @classmethod
    def from_settings(cls, settings: Settings) -> "NarrationPipeline":
        return cls(
            settings=settings,
            text_source=RedditTextSource.from_settings(settings),
            synthesizer=ElevenLabsSynthesizer.from_settings(settings),
            duration_probe=FFprobeDurationProbe(settings.ffprobe_binary),
            prober=CapabilityProber.from_settings(settings),
            composer=MediaComposer(FFmpegEngine.from_settings(settings)),
        )

    def start(self, request: NarrationRequest) -> "PipelineRun":
        return PipelineRun(self, request)

    def run(self, request: NarrationRequest) -> GeneratedArtifact:
        return self.start(request).execute()


class PipelineRun:
    """State and outputs of one request."""

    def __init__(self, pipeline: NarrationPipeline, request: NarrationRequest) -> None:
        self.pipeline = pipeline
        self.request = request
        self.state = PipelineState.PENDING
        self.history: list[StateTransition] = [StateTransition(state=PipelineState.PENDING)]
        self.error: Optional[PipelineError] = None

        self.title: str = ""
        self.narration: str = ""
        self.artifact: Optional[GeneratedArtifact] = None
        self.audio: Optional[AudioAsset] = None
        self.captions: Optional[CaptionTrack] = None
        self.plan: Optional[RenderPlan] = None

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def execute(self) -> GeneratedArtifact:
        """
        Run every stage in order.

        Raises:
            PipelineError: the first stage failure, after the run has moved
                           to FAILED. Unexpected exceptions are wrapped.
        """
        if self.state is not PipelineState.PENDING:
            raise RuntimeError(f"run already executed (state={self.state.value})")

        stages = (
            ("text", PipelineState.TEXT_ACQUIRED, self._acquire_text),
            ("synthesis", PipelineState.AUDIO_SYNTHESIZED, self._synthesize),
            ("duration", PipelineState.DURATION_MEASURED, self._measure),
            ("captions", PipelineState.CAPTIONS_BUILT, self._build_captions),
            ("plan", PipelineState.RENDER_PLANNED, self._plan),
            ("compose", PipelineState.VIDEO_COMPOSED, self._compose),
        )
        for name, target, stage in stages:
            try:
                detail = stage()
            except PipelineError as exc:
                self._fail(name, exc)
                raise
            except Exception as exc:  # noqa: BLE001 - surfaced as a PipelineError
                wrapped = PipelineError(f"{type(exc).__name__}: {exc}")
                self._fail(name, wrapped)
                raise wrapped from exc
            self._advance(target, detail)

        self._advance(PipelineState.COMPLETE, str(self.artifact.work_dir))
        logger.info("Request %s complete → %s", self.artifact.id, self.artifact.video_path)
        return self.artifact

    def summary(self) -> RunSummary:
        artifact = self.artifact if self.state is PipelineState.COMPLETE else None
        return RunSummary(
            request_id=str(self.artifact.id) if self.artifact else "",
            state=self.state,
            history=list(self.history),
            artifact=artifact,
            urls=artifact.urls(self.pipeline.settings.base_url) if artifact else {},
            error=str(self.error) if self.error else None,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _acquire_text(self) -> str:
        settings = self.pipeline.settings
        title = self.request.title.strip()
        body = self.request.body_text

        if self.request.source_url:
            fetched = self.pipeline.text_source.fetch(self.request.source_url)
            title = title or fetched.title
            if not body.strip():
                body = fetched.body

        if not body.strip():
            raise NarrationInputError("no narration text to synthesize")

        self.title = title or settings.default_title
        self.narration = body
        self.artifact = GeneratedArtifact.allocate(settings.output_root)
        return f"{len(body)} chars"

    def _synthesize(self) -> str:
        audio_bytes = self.pipeline.synthesizer.synthesize(self.narration, self.request.voice_selector)
        self.artifact.audio_path.write_bytes(audio_bytes)
        return f"{len(audio_bytes)} bytes"

    def _measure(self) -> str:
        duration = self.pipeline.duration_probe(self.artifact.audio_path)
        self.audio = AudioAsset(file_path=self.artifact.audio_path, duration_seconds=duration)
        return f"{duration:.3f}s"

    def _build_captions(self) -> str:
        self.captions = build_timeline(segment(self.narration), self.audio.duration_seconds)
        write_srt(self.captions, self.artifact.caption_path)
        return f"{len(self.captions.cues)} cues"

    def _plan(self) -> str:
        settings = self.pipeline.settings
        capabilities = self.pipeline.prober.probe(self.request.background_selector)
        request = self.request.model_copy(update={"title": self.title})
        self.plan = build_plan(
            capabilities,
            request,
            caption_file=self.artifact.caption_path,
            default_title=settings.default_title,
            solid_color=settings.solid_color,
        )
        return f"{self.plan.video_source_kind.value}+{self.plan.overlay_kind.value}"

    def _compose(self) -> str:
        self.pipeline.composer.compose(
            self.plan, self.audio, self.artifact.caption_path, self.artifact.video_path,
        )
        return self.artifact.video_path.name

    # ------------------------------------------------------------------
    # State bookkeeping
    # ------------------------------------------------------------------

    def _advance(self, state: PipelineState, detail: str = "") -> None:
        self.state = state
        self.history.append(StateTransition(state=state, detail=detail))
        logger.debug("→ %s %s", state.value, detail)

    def _fail(self, stage: str, exc: PipelineError) -> None:
        if exc.stage is None:
            exc.stage = stage
        self.error = exc
        self.state = PipelineState.FAILED
        self.history.append(StateTransition(state=PipelineState.FAILED, detail=f"{stage}: {exc}"))
        diagnostics = getattr(exc, "diagnostics", "")
        logger.error(
            "Request failed during %s: %s%s",
            stage,
            exc,
            f"\n{diagnostics}" if diagnostics else "",
        )
