"""SRT subtitle formatter.

WHY: SRT is the subtitle format every player and editing tool accepts.
Cue boundaries come straight from word timings, so they are exact rather
than the frame-approximated timecodes of the plain text output.

HOW: reflow_cues() groups the words; each cue is written as a 1-based
index, a "start --> end" line, the text, and a blank separator line.

RULES:
- Timestamp format: HH:MM:SS,mmm (comma before milliseconds)
- Indices are 1-based and follow cue order
- Empty transcript → empty file
- Output suffix: ".srt"
- Media type: "application/x-subrip"
"""

from __future__ import annotations

from typing import List

from stt_pipeline.core.ir import Cue, Transcript
from stt_pipeline.core.reflow import reflow_cues
from stt_pipeline.formatters.base import BaseFormatter, FormatterOutput


def split_millis(seconds: float) -> tuple:
    """Split seconds into (hours, minutes, seconds, millis) on whole milliseconds."""
    total_ms = max(0, int(round(seconds * 1000)))
    hours, rem = divmod(total_ms, 3600 * 1000)
    minutes, rem = divmod(rem, 60 * 1000)
    secs, millis = divmod(rem, 1000)
    return hours, minutes, secs, millis


def seconds_to_srt_time(seconds: float) -> str:
    """Convert seconds to SRT timestamp format: HH:MM:SS,mmm"""
    return "{:02d}:{:02d}:{:02d},{:03d}".format(*split_millis(seconds))


def generate_srt(cues: List[Cue]) -> str:
    lines: List[str] = []
    for i, cue in enumerate(cues, 1):
        lines.append(str(i))
        lines.append("{} --> {}".format(
            seconds_to_srt_time(cue.start_s), seconds_to_srt_time(cue.end_s)
        ))
        lines.append(cue.text)
        lines.append("")
    return "\n".join(lines)


class SRTCaptionFormatter(BaseFormatter):
    record_field = "srt_file"

    @property
    def name(self) -> str:
        return "SRT Subtitles"

    def format(self, transcript: Transcript) -> FormatterOutput:
        return FormatterOutput(
            suffix=".srt",
            content=generate_srt(reflow_cues(transcript.words)),
            media_type="application/x-subrip",
        )
