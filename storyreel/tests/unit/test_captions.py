"""
Unit tests for renderer/captions.py.

Tests:
  - segment(): boundaries, punctuation attachment, fallbacks, content preservation
  - build_timeline(): cue count, contiguity, clamping, 1.2 s floor, determinism
  - build_srt() / write_srt(): exact SRT layout

No ffmpeg required.
"""
from __future__ import annotations

import re
from pathlib import Path

import pytest

from storyreel.renderer.captions import (
    MIN_CUE_SECONDS,
    _seconds_to_srt,
    build_captions,
    build_srt,
    build_timeline,
    segment,
    write_srt,
)
from storyreel.schemas.narration import Sentence


def _squash(text: str) -> str:
    return re.sub(r"\s+", "", text)


# ===========================================================================
# segment()
# ===========================================================================

class TestSegment:

    def test_splits_on_terminal_punctuation(self):
        result = segment("Hello there. This is great!")
        assert [s.text for s in result] == ["Hello there.", "This is great!"]

    def test_char_length_counts_untrimmed_span(self):
        result = segment("Hello there. This is great!")
        assert [s.char_length for s in result] == [12, 15]

    def test_question_marks_and_runs_stay_attached(self):
        result = segment("Really?! Yes... Fine")
        assert [s.text for s in result] == ["Really?!", "Yes...", "Fine"]

    def test_full_width_terminals(self):
        result = segment("你好。今天好吗？很好！")
        assert [s.text for s in result] == ["你好。", "今天好吗？", "很好！"]

    def test_no_boundary_is_single_sentence(self):
        result = segment("  no punctuation here  ")
        assert len(result) == 1
        assert result[0].text == "no punctuation here"

    def test_line_breaks_become_spaces(self):
        result = segment("First line\nstill first.\r\nSecond.")
        assert [s.text for s in result] == ["First line still first.", "Second."]

    def test_whitespace_only_falls_back_to_original(self):
        result = segment("   ")
        assert len(result) == 1
        assert result[0].text == "   "
        assert result[0].char_length == 3

    def test_empty_falls_back_to_single_sentence(self):
        result = segment("")
        assert len(result) == 1
        assert result[0].text == ""
        assert result[0].char_length == 1

    def test_punctuation_only(self):
        result = segment(" ?! ")
        assert [s.text for s in result] == ["?!"]

    def test_leading_terminals_kept(self):
        result = segment("...and then it happened.")
        assert [s.text for s in result] == ["...and then it happened."]

    def test_inverted_marks_are_content(self):
        result = segment("¿Qué pasa? ¡Nada!")
        assert [s.text for s in result] == ["¿Qué pasa?", "¡Nada!"]

    @pytest.mark.parametrize("text", [
        "Hello there. This is great!",
        "One.Two.Three",
        "Wait... what?! No way.\n\nReally",
        "trailing spaces.   ",
        "¿Qué? ¡Sí! 好。",
    ])
    def test_reconstructs_content(self, text):
        joined = "".join(s.text for s in segment(text))
        assert _squash(joined) == _squash(text)

    def test_never_empty_list(self):
        for text in ["", " ", "\n", ".", "a"]:
            assert len(segment(text)) >= 1


# ===========================================================================
# build_timeline()
# ===========================================================================

class TestBuildTimeline:

    def test_two_sentences_ten_seconds(self):
        track = build_captions("Hello there. This is great!", 10.0)
        assert len(track.cues) == 2
        first, second = track.cues
        assert first.start_seconds == 0.0
        assert first.end_seconds == pytest.approx(10.0 * 12 / 27)
        assert second.start_seconds == first.end_seconds
        assert second.end_seconds == 10.0

    def test_single_sentence_spans_whole_audio(self):
        track = build_captions("no punctuation here", 5.0)
        assert len(track.cues) == 1
        assert track.cues[0].start_seconds == 0.0
        assert track.cues[0].end_seconds == 5.0

    def test_short_sentences_get_floor(self):
        track = build_captions("Hi. This sentence is considerably longer than the first.", 20.0)
        assert track.cues[0].duration_seconds == pytest.approx(MIN_CUE_SECONDS)

    def test_floor_overflow_collapses_tail_to_zero_width(self):
        track = build_captions("A. B. C. D. E.", 2.0)
        assert len(track.cues) == 5
        assert track.cues[0].end_seconds == pytest.approx(1.2)
        assert track.cues[1].end_seconds == 2.0
        for cue in track.cues[2:]:
            assert cue.start_seconds == 2.0
            assert cue.end_seconds == 2.0

    def test_zero_duration(self):
        track = build_captions("One. Two.", 0.0)
        assert all(c.start_seconds == 0.0 and c.end_seconds == 0.0 for c in track.cues)

    def test_negative_duration_clamped(self):
        track = build_captions("One.", -3.0)
        assert track.total_duration_seconds == 0.0
        assert track.cues[0].end_seconds == 0.0

    @pytest.mark.parametrize("text,duration", [
        ("Hello there. This is great!", 10.0),
        ("One. Two. Three. Four.", 3.0),
        ("A much longer opening sentence here. Short. Medium length one.", 7.3),
        ("x. " * 40, 12.0),
        ("Single", 0.5),
    ])
    def test_track_invariants(self, text, duration):
        sentences = segment(text)
        track = build_timeline(sentences, duration)

        assert len(track.cues) == len(sentences)
        assert [c.index for c in track.cues] == list(range(1, len(sentences) + 1))
        assert track.cues[0].start_seconds == 0.0
        for prev, cue in zip(track.cues, track.cues[1:]):
            assert cue.start_seconds == prev.end_seconds
        assert track.cues[-1].end_seconds <= duration
        # Cues that end before the audio does were never clamped.
        for cue in track.cues:
            if cue.end_seconds < duration:
                assert cue.duration_seconds >= min(MIN_CUE_SECONDS, duration) - 1e-9
        assert track.allocated_seconds == pytest.approx(track.cues[-1].end_seconds)

    def test_deterministic(self):
        sentences = segment("Alpha beta. Gamma delta epsilon! Zeta?")
        a = build_timeline(sentences, 9.87)
        b = build_timeline(sentences, 9.87)
        assert a.model_dump_json() == b.model_dump_json()

    def test_accepts_prebuilt_sentences(self):
        track = build_timeline([Sentence(text="x", char_length=1)], 4.0)
        assert track.cues[0].end_seconds == 4.0


# ===========================================================================
# SRT
# ===========================================================================

class TestSrt:

    def test_timestamp_format(self):
        assert _seconds_to_srt(0) == "00:00:00,000"
        assert _seconds_to_srt(4.4449) == "00:00:04,444"
        assert _seconds_to_srt(3_723.5) == "01:02:03,500"
        assert _seconds_to_srt(-1) == "00:00:00,000"

    def test_layout(self):
        srt = build_srt(build_captions("Hello there. This is great!", 10.0))
        assert srt == (
            "1\n"
            "00:00:00,000 --> 00:00:04,444\n"
            "Hello there.\n"
            "\n"
            "2\n"
            "00:00:04,444 --> 00:00:10,000\n"
            "This is great!\n"
        )

    def test_empty_track(self):
        from storyreel.schemas.narration import CaptionTrack
        assert build_srt(CaptionTrack(cues=[], total_duration_seconds=1.0)) == ""

    def test_write_srt(self, tmp_path: Path):
        track = build_captions("Uno. Dos.", 4.0)
        out = write_srt(track, tmp_path / "captions.srt")
        assert out == tmp_path / "captions.srt"
        assert out.read_text(encoding="utf-8") == build_srt(track)

    def test_write_srt_utf8(self, tmp_path: Path):
        track = build_captions("¿Qué tal? 好。", 4.0)
        out = write_srt(track, tmp_path / "c.srt")
        assert "¿Qué tal?" in out.read_bytes().decode("utf-8")
