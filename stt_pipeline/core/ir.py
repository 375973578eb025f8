"""Intermediate representation dataclasses for recognized words and cues.

WHY: The engine returns nested recognition results with string durations.
Formatters (plain text, SRT, WebVTT) need a flat, typed word stream with
float timings, and the subtitle formatters share the same cue list. The IR
decouples engine parsing from formatting.

HOW: Three dataclasses:
  Word       — one recognized word with start/end offsets
  Cue        — one subtitle entry (start, end, text)
  Transcript — the word stream plus the frame rate and source path that
               the formatters need

RULES:
- All times are float seconds from the start of the audio
- Words are kept in engine order; nothing here sorts them
- Transcript.words may be empty (silent audio); formatters must cope
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Word:
    """A single recognized word.

    RULES:
    - text: literal word text as returned by the engine
    - start_s / end_s: float seconds, end_s >= start_s for engine output
    """

    text: str
    start_s: float
    end_s: float


@dataclass(frozen=True)
class Cue:
    """A subtitle entry with a start time, end time, and text."""

    start_s: float
    end_s: float
    text: str


@dataclass
class Transcript:
    """Everything a formatter needs to render one finished job.

    RULES:
    - words: flattened first-alternative words from every result
    - fps: validated frame rate used for HH:MM:SS:FF timecodes
    - source: object path of the original audio (for output naming)
    - results: raw engine results, kept for the JSON artifact
    """

    words: list[Word]
    fps: int
    source: str
    results: list[dict] = field(default_factory=list)
