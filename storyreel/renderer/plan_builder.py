"""
Render plan builder.

Turns (CapabilityReport, NarrationRequest, caption file) into a RenderPlan.
Pure: no filesystem access, no subprocesses; the same inputs always give the
same plan.

Decisions, first match wins:

  video source   selector is solid/none, or no usable clip  → SOLID_COLOR_GENERATED
                 otherwise                                  → NAMED_BACKGROUND_CLIP
  overlay        font usable, drawtext and subtitles work   → TITLE_AND_CAPTION_BOX
                 otherwise                                  → NONE

Captions are burned in only together with the title overlay; without a
usable font libass has nothing to draw with either. The sidecar .srt is
produced regardless.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..schemas.narration import NarrationRequest
from ..schemas.render_plan import (
    CapabilityReport,
    EncodingProfile,
    OverlayKind,
    RenderPlan,
    Resolution,
    TitleStyle,
    VideoSourceKind,
)
from .filter_graph import DrawBox, DrawText, FilterChain, Format, Scale, SetSar, Subtitles

logger = logging.getLogger(__name__)

# Named background clips, relative to <assets_dir>/bg/.
BACKGROUND_CLIPS: dict[str, str] = {
    "gaming": "gaming.mp4",
    "abstract": "abstract.mp4",
    "city": "city.mp4",
    "nature": "nature.mp4",
}
DEFAULT_BACKGROUND = "abstract"
SOLID_SELECTORS = frozenset({"solid", "none"})

VIDEO_OUTPUT_LABEL = "v"


# ---------------------------------------------------------------------------
# Background selection
# ---------------------------------------------------------------------------

def is_solid_selector(selector: str) -> bool:
    return selector.strip().lower() in SOLID_SELECTORS


def resolve_background_name(selector: str, default: str = DEFAULT_BACKGROUND) -> str:
    """Map a UI selector to a known clip name; unknown selectors get *default*."""
    key = selector.strip().lower()
    if key in BACKGROUND_CLIPS:
        return key
    if default not in BACKGROUND_CLIPS:
        raise ValueError(f"default background {default!r} is not a known clip")
    return default


def background_clip_path(
    backgrounds_dir: Path,
    selector: str,
    default: str = DEFAULT_BACKGROUND,
) -> Path:
    return Path(backgrounds_dir) / BACKGROUND_CLIPS[resolve_background_name(selector, default)]


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

def build_plan(
    capabilities: CapabilityReport,
    request: NarrationRequest,
    caption_file: Optional[Path] = None,
    *,
    default_title: str = "Story Reel",
    solid_color: str = "0x1a1a2e",
    resolution: Optional[Resolution] = None,
    style: Optional[TitleStyle] = None,
    encoding: Optional[EncodingProfile] = None,
) -> RenderPlan:
    """
    Build the RenderPlan for one request.

    Args:
        capabilities:  Fresh CapabilityReport for this render.
        request:       The narration request (background selector, title,
                       max duration).
        caption_file:  Persisted .srt to burn in when the overlay is enabled.
        default_title: Used when the request title is blank.
    """
    resolution = resolution or Resolution()
    style = style or TitleStyle()
    encoding = encoding or EncodingProfile()

    if is_solid_selector(request.background_selector) or not capabilities.has_usable_background:
        source_kind = VideoSourceKind.SOLID_COLOR_GENERATED
        background_path = None
    else:
        source_kind = VideoSourceKind.NAMED_BACKGROUND_CLIP
        background_path = capabilities.background_path

    overlay_enabled = (
        capabilities.has_usable_font
        and capabilities.supports_text_overlay
        and capabilities.font_path is not None
    )
    overlay_kind = OverlayKind.TITLE_AND_CAPTION_BOX if overlay_enabled else OverlayKind.NONE

    chain = FilterChain(input_label="0:v", output_label=VIDEO_OUTPUT_LABEL)
    chain.add(Scale(resolution.width, resolution.height))
    chain.add(SetSar(1))
    chain.add(Format(encoding.pix_fmt))

    burned_captions: Optional[Path] = None
    if overlay_enabled:
        title = request.title.strip() or default_title
        chain.add(DrawBox(
            x=style.box_x,
            y=style.box_y,
            width=style.box_width,
            height=style.box_height,
            color=style.box_color,
        ))
        chain.add(DrawText(
            text=title,
            fontfile=str(capabilities.font_path),
            fontcolor=style.font_color,
            fontsize=style.font_size,
            y=style.text_y,
            shadow=style.shadow_offset,
        ))
        if caption_file is not None:
            chain.add(Subtitles(
                filename=str(caption_file),
                fontsdir=str(capabilities.font_path.parent),
            ))
            burned_captions = Path(caption_file)

    output_options = [
        "-map", f"[{VIDEO_OUTPUT_LABEL}]",
        "-map", "1:a",
        "-shortest",
        "-r", str(encoding.fps),
        "-c:v", encoding.video_codec,
        "-preset", encoding.preset,
        "-crf", str(encoding.crf),
        "-pix_fmt", encoding.pix_fmt,
        "-c:a", encoding.audio_codec,
        "-movflags", "+faststart",
    ]
    if request.max_duration_seconds:
        output_options += ["-t", _format_seconds(request.max_duration_seconds)]

    plan = RenderPlan(
        video_source_kind=source_kind,
        overlay_kind=overlay_kind,
        filter_graph=chain.render(),
        output_options=output_options,
        max_duration_seconds=request.max_duration_seconds,
        background_path=background_path,
        solid_color=solid_color,
        resolution=resolution,
        fps=encoding.fps,
        video_output_label=VIDEO_OUTPUT_LABEL,
        caption_file=burned_captions,
    )
    logger.debug(
        "RenderPlan | source=%s | overlay=%s | graph=%s",
        plan.video_source_kind.value,
        plan.overlay_kind.value,
        plan.filter_graph,
    )
    return plan


def _format_seconds(seconds: float) -> str:
    """Seconds for ffmpeg's -t: 30 -> "30", 12.5 -> "12.5"."""
    seconds = float(seconds)
    if seconds.is_integer():
        return str(int(seconds))
    return f"{seconds:.3f}".rstrip("0")
