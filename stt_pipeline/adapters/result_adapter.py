"""Adapter: engine recognition results → flat list of IR Words.

WHY: The engine groups words into recognition results, each with one or
more alternatives ranked by confidence. The reflow engine wants one flat,
time-ordered word stream.

HOW: Takes the first alternative of every result and converts each of its
word entries to a Word, parsing the duration strings to float seconds.

RULES:
- Only the first (highest-confidence) alternative is used
- Results without alternatives, and alternatives without words, are skipped
- Word entries with empty text are dropped
- Order follows the engine's result and word order exactly
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from stt_pipeline.core.ir import Word
from stt_pipeline.engine.models import parse_duration


def results_to_words(results: Iterable[Dict[str, Any]]) -> List[Word]:
    """Flatten recognition results into IR Words."""
    words: List[Word] = []
    for result in results:
        alternatives = result.get("alternatives") or []
        if not alternatives:
            continue
        for entry in alternatives[0].get("words") or []:
            text = str(entry.get("word", "")).strip()
            if not text:
                continue
            words.append(Word(
                text=text,
                start_s=parse_duration(entry.get("startTime")),
                end_s=parse_duration(entry.get("endTime")),
            ))
    return words


def results_to_transcript_text(results: Iterable[Dict[str, Any]]) -> str:
    """Concatenate the first-alternative transcripts, as the engine wrote them."""
    parts: List[str] = []
    for result in results:
        alternatives = result.get("alternatives") or []
        if alternatives:
            parts.append(str(alternatives[0].get("transcript", "")))
    return "".join(parts)
