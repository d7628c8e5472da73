"""
Small AST for the ffmpeg composition filter graph.

A FilterChain is "[in]node,node,...[out]". Nodes render their own option
lists; every free-text value (title, font path, subtitle path) goes through
escape_filter_value() at the point it is inserted, so no caller ever
concatenates raw user text into the graph.

Escaping follows ffmpeg's two quoting levels (ffmpeg-filters, "Notes on
filtergraph escaping"):

  1. option level:  \\  '  :       are backslash-escaped
  2. graph level:   \\  '  [ ] , ;  are backslash-escaped again

drawtext is emitted with expansion=none, so '%' needs no third level.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

_OPTION_SPECIAL = "\\':"
_GRAPH_SPECIAL = "\\'[],;"


def _backslash_escape(value: str, special: str) -> str:
    return "".join("\\" + ch if ch in special else ch for ch in value)


def escape_filter_value(value: str) -> str:
    """Escape *value* for use as one filter option value inside a graph."""
    return _backslash_escape(_backslash_escape(value, _OPTION_SPECIAL), _GRAPH_SPECIAL)


OptionValue = Union[str, int, float]


def _format_options(options: list[tuple[str, Optional[OptionValue]]]) -> str:
    return ":".join(f"{key}={value}" for key, value in options if value is not None)


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Scale:
    width: int
    height: int

    def render(self) -> str:
        return f"scale={self.width}:{self.height}"


@dataclass(frozen=True)
class SetSar:
    ratio: int = 1

    def render(self) -> str:
        return f"setsar={self.ratio}"


@dataclass(frozen=True)
class Format:
    pix_fmt: str = "yuv420p"

    def render(self) -> str:
        return f"format={self.pix_fmt}"


@dataclass(frozen=True)
class DrawBox:
    x: int
    y: int
    width: int
    height: int
    color: str
    thickness: str = "fill"

    def render(self) -> str:
        return "drawbox=" + _format_options([
            ("x", self.x),
            ("y", self.y),
            ("w", self.width),
            ("h", self.height),
            ("color", self.color),
            ("t", self.thickness),
        ])


@dataclass(frozen=True)
class DrawText:
    """Centred text; *text* and *fontfile* are escaped on render."""
    text: str
    fontfile: str
    fontcolor: str = "white"
    fontsize: int = 52
    x: str = "(w-text_w)/2"
    y: OptionValue = 130
    shadow: int = 2

    def render(self) -> str:
        return "drawtext=" + _format_options([
            ("fontfile", escape_filter_value(self.fontfile)),
            ("text", escape_filter_value(self.text)),
            ("expansion", "none"),
            ("fontcolor", self.fontcolor),
            ("fontsize", self.fontsize),
            ("x", self.x),
            ("y", self.y),
            ("shadowx", self.shadow),
            ("shadowy", self.shadow),
        ])


@dataclass(frozen=True)
class Subtitles:
    """Burn an SRT file into the video (libass)."""
    filename: str
    fontsdir: Optional[str] = None

    def render(self) -> str:
        return "subtitles=" + _format_options([
            ("filename", escape_filter_value(self.filename)),
            ("fontsdir", escape_filter_value(self.fontsdir) if self.fontsdir else None),
        ])


FilterNode = Union[Scale, SetSar, Format, DrawBox, DrawText, Subtitles]


@dataclass
class FilterChain:
    """A single linear chain from one input pad to one output label."""
    input_label: str
    output_label: str
    nodes: list[FilterNode] = field(default_factory=list)

    def add(self, node: FilterNode) -> "FilterChain":
        self.nodes.append(node)
        return self

    def render(self) -> str:
        if not self.nodes:
            raise ValueError("FilterChain has no filters")
        body = ",".join(node.render() for node in self.nodes)
        return f"[{self.input_label}]{body}[{self.output_label}]"
