"""Greedy reflow of a word stream into timestamped lines and subtitle cues.

WHY: The engine returns one long run of words per recognition result.
Readers need short lines with a timecode to seek by, and subtitle files
need cues of roughly one broadcast line each. Both views come from the
same word stream and the same greedy line-filling rule.

HOW: Words are appended to a line buffer one at a time. After each append
the buffer length is checked against the budget; once it is exceeded the
buffer is flushed and the next word starts a fresh line. A non-empty
buffer left at the end is flushed too.

  reflow_text — lines prefixed with the HH:MM:SS:FF timecode of their first
                word; the budget grows by the width of that prefix
  reflow_cues — Cue(start of first word, end of last word, text)

RULES:
- Budget defaults to LINE_LENGTH (42 characters)
- The check happens after appending, so a line may overrun the budget by
  at most the word that triggered the flush
- Input order is kept; nothing is sorted
- Words whose text is empty or whitespace are ignored
- Empty input gives empty output; no empty line or cue is ever emitted
- The two functions share no state and can be called in any order
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from stt_pipeline.config import LINE_LENGTH
from stt_pipeline.core.ir import Cue, Word
from stt_pipeline.core.timecode import format_timecode, resolve_fps


def reflow_text(
    words: Iterable[Word],
    fps: int,
    line_length: int = LINE_LENGTH,
    timestamps: bool = True,
) -> List[str]:
    """Wrap words into lines, each prefixed with its first word's timecode.

    Args:
        words: Time-ordered recognized words.
        fps: Frame rate for the timecode prefix.
        line_length: Character budget for the text part of a line.
        timestamps: When False, lines carry no timecode prefix.

    Returns:
        The completed lines, without trailing newlines.
    """
    fps = resolve_fps(fps)
    lines: List[str] = []
    buffer = ""
    budget = line_length

    for word in words:
        text = word.text.strip()
        if not text:
            continue

        if not buffer:
            if timestamps:
                prefix = format_timecode(word.start_s, fps) + " "
                buffer = prefix
                budget = line_length + len(prefix)
            else:
                budget = line_length

        buffer += text + " "

        if len(buffer.rstrip()) > budget:
            lines.append(buffer.strip())
            buffer = ""

    if buffer.strip():
        lines.append(buffer.strip())

    return lines


def reflow_cues(
    words: Iterable[Word],
    line_length: int = LINE_LENGTH,
) -> List[Cue]:
    """Group words into subtitle cues using the greedy line budget.

    Args:
        words: Time-ordered recognized words.
        line_length: Character budget per cue.

    Returns:
        Cues in input order.
    """
    cues: List[Cue] = []
    buffer = ""
    first = None  # type: Optional[Word]
    last = None  # type: Optional[Word]

    for word in words:
        text = word.text.strip()
        if not text:
            continue

        if first is None:
            first = word
        last = word
        buffer += text + " "

        if len(buffer.rstrip()) > line_length:
            cues.append(Cue(start_s=first.start_s, end_s=last.end_s, text=buffer.strip()))
            buffer = ""
            first = None

    if first is not None and last is not None and buffer.strip():
        cues.append(Cue(start_s=first.start_s, end_s=last.end_s, text=buffer.strip()))

    return cues


def render_text(lines: List[str]) -> str:
    """Join reflowed lines into file content (newline-terminated, or empty)."""
    if not lines:
        return ""
    return "\n".join(lines) + "\n"
