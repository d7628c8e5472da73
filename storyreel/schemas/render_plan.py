"""
CapabilityReport and RenderPlan.

CapabilityReport is a per-render snapshot of what the host can do: a usable
background clip, a loadable font, a working drawtext filter. It is computed
fresh for every render and never cached, because assets and fonts may come
and go between requests.

RenderPlan is the declarative composition recipe handed to the composer.
It is fully determined by (CapabilityReport, NarrationRequest, caption file)
and carries everything the engine needs except the audio and output paths.
"""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class VideoSourceKind(str, Enum):
    NAMED_BACKGROUND_CLIP = "named_background_clip"
    SOLID_COLOR_GENERATED = "solid_color_generated"


class OverlayKind(str, Enum):
    TITLE_AND_CAPTION_BOX = "title_and_caption_box"
    NONE = "none"


class Resolution(BaseModel):
    """Output resolution. Portrait 9:16 for short-form video."""
    model_config = ConfigDict(frozen=True)

    width: int = 1080
    height: int = 1920
    aspect: str = "9:16"


class TitleStyle(BaseModel):
    """
    Geometry and colours of the burned-in title.
    The box sits near the top of the frame; the title is centred inside it.
    """
    model_config = ConfigDict(frozen=True)

    box_x: int = 80
    box_y: int = 100
    box_width: int = 920
    box_height: int = 160
    box_color: str = "black@0.4"
    font_color: str = "white"
    font_size: int = 52
    text_y: int = 130
    shadow_offset: int = 2


class EncodingProfile(BaseModel):
    """The single fixed output profile (H.264 + AAC in MP4)."""
    model_config = ConfigDict(frozen=True)

    fps: int = 30
    video_codec: str = "libx264"
    preset: str = "veryfast"
    crf: int = 23
    pix_fmt: str = "yuv420p"
    audio_codec: str = "aac"


class CapabilityReport(BaseModel):
    """
    Snapshot of optional rendering features for one render.

    font_path / background_path are the concrete files behind the flags;
    they are None whenever the corresponding flag is False.
    """
    model_config = ConfigDict(frozen=True)

    has_usable_font: bool = False
    has_usable_background: bool = False
    supports_text_overlay: bool = False
    font_path: Optional[Path] = None
    background_path: Optional[Path] = None


class RenderPlan(BaseModel):
    """
    Declarative description of one composition.

    filter_graph reads input 0 (video source) and writes the label in
    video_output_label; output_options already map that label and input 1's
    audio. background_path is set only for NAMED_BACKGROUND_CLIP; solid_color
    is used only for SOLID_COLOR_GENERATED.
    """
    model_config = ConfigDict(frozen=True)

    video_source_kind: VideoSourceKind
    overlay_kind: OverlayKind
    filter_graph: str
    output_options: list[str] = Field(default_factory=list)
    max_duration_seconds: Optional[float] = None
    background_path: Optional[Path] = None
    solid_color: str = "0x1a1a2e"
    resolution: Resolution = Field(default_factory=Resolution)
    fps: int = 30
    video_output_label: str = "v"
    caption_file: Optional[Path] = None   # set when captions are burned in

    @property
    def burns_captions(self) -> bool:
        return self.caption_file is not None
