"""Plain text transcript formatter with HH:MM:SS:FF line timestamps.

WHY: Editors want a readable transcript they can scan and seek by. Each
line carries the timecode of its first word in the job's frame rate, so
a line can be located in an editing timeline directly.

HOW: Delegates line filling to reflow_text() and joins the lines.

RULES:
- One line per greedy 42-character unit, prefixed "HH:MM:SS:FF "
- Newline-terminated; empty transcript → empty file
- Output suffix: ".txt"
- Media type: "text/plain"
"""

from __future__ import annotations

from stt_pipeline.core.ir import Transcript
from stt_pipeline.core.reflow import reflow_text, render_text
from stt_pipeline.formatters.base import BaseFormatter, FormatterOutput


class PlainTextFormatter(BaseFormatter):
    record_field = "txt_file"

    def __init__(self, timestamps: bool = True) -> None:
        self._timestamps = timestamps

    @property
    def name(self) -> str:
        return "Plain Text"

    def format(self, transcript: Transcript) -> FormatterOutput:
        lines = reflow_text(transcript.words, transcript.fps, timestamps=self._timestamps)
        return FormatterOutput(
            suffix=".txt",
            content=render_text(lines),
            media_type="text/plain",
        )
