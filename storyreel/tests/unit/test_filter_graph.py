"""
Unit tests for renderer/filter_graph.py.

The parsing helpers below undo ffmpeg's two escaping levels the way the
filtergraph parser does (graph level, then option level), so the tests can
check that every inserted value survives as exactly one option.
"""
from __future__ import annotations

import pytest

from storyreel.renderer.filter_graph import (
    DrawBox,
    DrawText,
    FilterChain,
    Format,
    Scale,
    SetSar,
    Subtitles,
    escape_filter_value,
)


def split_unescaped(text: str, separators: str) -> list[str]:
    """Split on separators not preceded by a backslash; escapes are kept."""
    parts, current, i = [], [], 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            current.append(text[i:i + 2])
            i += 2
            continue
        if ch in separators:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    parts.append("".join(current))
    return parts


def unescape(text: str) -> str:
    out, i = [], 0
    while i < len(text):
        if text[i] == "\\" and i + 1 < len(text):
            out.append(text[i + 1])
            i += 2
        else:
            out.append(text[i])
            i += 1
    return "".join(out)


def parse_chain(graph: str) -> tuple[str, list[tuple[str, dict[str, str]]], str]:
    """Return (input_label, [(filter_name, options)], output_label)."""
    assert graph.startswith("[")
    in_end = graph.index("]")
    input_label = graph[1:in_end]
    assert graph.endswith("]")
    out_start = graph.rindex("[")
    output_label = graph[out_start + 1:-1]
    body = graph[in_end + 1:out_start]

    filters = []
    for clause in split_unescaped(body, ",;"):
        name, _, args = clause.partition("=")
        option_string = unescape(args)          # graph level
        options = {}
        for pair in split_unescaped(option_string, ":"):
            key, _, value = pair.partition("=")
            options[key] = unescape(value)      # option level
        filters.append((name, options))
    return input_label, filters, output_label


class TestEscapeFilterValue:

    def test_plain_text_untouched(self):
        assert escape_filter_value("Hello World") == "Hello World"

    def test_colon(self):
        assert escape_filter_value("a:b") == "a\\\\:b"

    def test_single_quote(self):
        assert escape_filter_value("it's") == "it\\\\\\'s"

    def test_backslash(self):
        assert escape_filter_value("a\\b") == "a\\\\\\\\b"

    def test_graph_separators(self):
        assert escape_filter_value("a,b;c[d]") == "a\\,b\\;c\\[d\\]"

    @pytest.mark.parametrize("value", [
        "It's 5:00 \\ done",
        "C:\\Users\\me\\captions.srt",
        "[x], y; z: 'q'",
        "'''",
        ":::",
        "\\\\",
        "100% real",
    ])
    def test_round_trips_through_both_levels(self, value):
        escaped = escape_filter_value(value)
        # graph level: no bare separators survive
        assert split_unescaped(escaped, ",;[]") == [escaped]
        option_level = unescape(escaped)
        assert split_unescaped(option_level, ":") == [option_level]
        assert unescape(option_level) == value


class TestNodes:

    def test_scale_setsar_format(self):
        assert Scale(1080, 1920).render() == "scale=1080:1920"
        assert SetSar().render() == "setsar=1"
        assert Format().render() == "format=yuv420p"

    def test_drawbox(self):
        box = DrawBox(x=80, y=100, width=920, height=160, color="black@0.4")
        assert box.render() == "drawbox=x=80:y=100:w=920:h=160:color=black@0.4:t=fill"

    def test_drawtext_disables_expansion(self):
        rendered = DrawText(text="Hi", fontfile="/f.ttf").render()
        assert "expansion=none" in rendered
        assert rendered.startswith("drawtext=fontfile=/f.ttf:text=Hi:")

    def test_subtitles_without_fontsdir(self):
        assert Subtitles("/w/captions.srt").render() == "subtitles=filename=/w/captions.srt"


class TestFilterChain:

    def test_render_labels(self):
        chain = FilterChain("0:v", "v").add(Scale(10, 20)).add(Format())
        assert chain.render() == "[0:v]scale=10:20,format=yuv420p[v]"

    def test_empty_chain_rejected(self):
        with pytest.raises(ValueError):
            FilterChain("0:v", "v").render()

    def test_hostile_title_is_one_drawtext_clause(self):
        title = "Boss: 'fired me', then; [laughed] \\o/"
        chain = FilterChain("0:v", "v")
        chain.add(Scale(1080, 1920))
        chain.add(DrawText(text=title, fontfile="/fonts/My Font: Bold.ttf"))
        chain.add(Subtitles("/tmp/job:1/captions.srt"))

        input_label, filters, output_label = parse_chain(chain.render())

        assert input_label == "0:v"
        assert output_label == "v"
        assert [name for name, _ in filters] == ["scale", "drawtext", "subtitles"]
        drawtext = filters[1][1]
        assert drawtext["text"] == title
        assert drawtext["fontfile"] == "/fonts/My Font: Bold.ttf"
        assert filters[2][1]["filename"] == "/tmp/job:1/captions.srt"
