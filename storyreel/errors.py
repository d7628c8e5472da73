"""
Pipeline error hierarchy.

Only three stages can fail a request: speech synthesis, duration measurement
and composition. A request with no narration text is rejected as a client
input problem. Segmentation, timeline building, capability probing and plan
building are total and never raise.
"""
from __future__ import annotations

from typing import Optional


class PipelineError(Exception):
    """Base class for errors that abort a pipeline run."""

    #: True when the caller (not the backend) is at fault.
    client_error: bool = False

    def __init__(self, message: str, stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.stage = stage


class NarrationInputError(PipelineError):
    """No narration text available after text acquisition."""
    client_error = True


class SynthesisError(PipelineError):
    """The speech provider failed (credentials, quota, network, bad response)."""


class DurationProbeError(PipelineError):
    """The duration tool could not be run against the synthesized audio."""


class RenderError(PipelineError):
    """
    The rendering engine failed.

    diagnostics holds the engine's own output verbatim (ffmpeg stderr tail).
    """

    def __init__(
        self,
        message: str,
        diagnostics: str = "",
        stage: Optional[str] = None,
    ) -> None:
        super().__init__(message, stage=stage)
        self.diagnostics = diagnostics
