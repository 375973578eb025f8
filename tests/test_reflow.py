"""Tests for greedy line and cue reflow.

RULES covered:
- Empty input gives empty output
- Word order and text are preserved exactly
- A line only overruns the budget by the word that triggered the flush
- Cue times come from the first and last word of the cue
"""

from __future__ import annotations

from typing import List

from stt_pipeline.config import LINE_LENGTH
from stt_pipeline.core.ir import Word
from stt_pipeline.core.reflow import reflow_cues, reflow_text, render_text


def _words(texts: List[str], step: float = 0.5) -> List[Word]:
    return [
        Word(text=t, start_s=i * step, end_s=i * step + step * 0.8)
        for i, t in enumerate(texts)
    ]


SENTENCE = (
    "The committee reviewed the proposal in detail and agreed that the new "
    "timeline was realistic given the staffing changes announced last month "
    "although several members asked for a follow up report"
).split()


# ---------------------------------------------------------------------------
# reflow_text
# ---------------------------------------------------------------------------


class TestReflowText:
    def test_empty(self):
        assert reflow_text([], 25) == []
        assert render_text([]) == ""

    def test_whitespace_words_only(self):
        words = [Word(" ", 0.0, 0.1), Word("", 0.1, 0.2)]
        assert reflow_text(words, 25) == []

    def test_nine_four_letter_words_fill_a_line(self):
        # "abcd " x 9 = 44 chars after strip -> over 42, flushed
        lines = reflow_text(_words(["abcd"] * 10), 25, timestamps=False)
        assert lines == [" ".join(["abcd"] * 9), "abcd"]

    def test_timestamp_prefix_does_not_count_against_budget(self):
        lines = reflow_text(_words(["abcd"] * 10), 25)
        assert len(lines) == 2
        assert lines[0] == "00:00:00:00 " + " ".join(["abcd"] * 9)
        # tenth word starts at 4.5s -> 112 frames -> 12 into second 4
        assert lines[1] == "00:00:04:12 abcd"

    def test_text_reconstructs_input(self):
        lines = reflow_text(_words(SENTENCE), 25, timestamps=False)
        assert " ".join(lines) == " ".join(SENTENCE)

    def test_overrun_is_at_most_one_word(self):
        lines = reflow_text(_words(SENTENCE), 25, timestamps=False)
        for line in lines[:-1]:
            assert len(line) > LINE_LENGTH
            last_word = line.split(" ")[-1]
            assert len(line) - len(last_word) - 1 <= LINE_LENGTH
        assert len(lines[-1]) <= LINE_LENGTH + max(len(w) for w in SENTENCE) + 1

    def test_line_prefix_uses_first_word_start(self):
        words = [Word("late", 65.0, 65.4), Word("start", 65.5, 66.0)]
        assert reflow_text(words, 25) == ["00:01:05:00 late start"]

    def test_invalid_fps_falls_back(self):
        words = [Word("hi", 1.5, 1.8)]
        assert reflow_text(words, 0) == ["00:00:01:12 hi"]

    def test_render_text_newline_terminated(self):
        assert render_text(["a", "b"]) == "a\nb\n"

    def test_custom_line_length(self):
        lines = reflow_text(_words(["ab", "cd", "ef"]), 25, line_length=4, timestamps=False)
        assert lines == ["ab cd", "ef"]


# ---------------------------------------------------------------------------
# reflow_cues
# ---------------------------------------------------------------------------


class TestReflowCues:
    def test_empty(self):
        assert reflow_cues([]) == []

    def test_text_reconstructs_input(self):
        cues = reflow_cues(_words(SENTENCE))
        assert " ".join(c.text for c in cues) == " ".join(SENTENCE)

    def test_cue_times_span_first_to_last_word(self):
        words = _words(["abcd"] * 10, step=1.0)
        cues = reflow_cues(words)
        assert len(cues) == 2
        assert cues[0].start_s == words[0].start_s
        assert cues[0].end_s == words[8].end_s
        assert cues[1].start_s == words[9].start_s
        assert cues[1].end_s == words[9].end_s

    def test_cues_are_ordered_and_non_empty(self):
        cues = reflow_cues(_words(SENTENCE))
        for a, b in zip(cues, cues[1:]):
            assert a.start_s <= b.start_s
        assert all(c.text for c in cues)

    def test_single_long_word_is_its_own_cue(self):
        word = Word("x" * 60, 2.0, 3.0)
        cues = reflow_cues([word, Word("after", 3.0, 3.5)])
        assert cues[0].text == "x" * 60
        assert cues[0].start_s == 2.0 and cues[0].end_s == 3.0
        assert cues[1].text == "after"

    def test_whitespace_words_skipped(self):
        words = [Word("one", 0.0, 0.5), Word("  ", 0.5, 0.6), Word("two", 0.6, 1.0)]
        cues = reflow_cues(words)
        assert len(cues) == 1
        assert cues[0].text == "one two"
        assert cues[0].end_s == 1.0
