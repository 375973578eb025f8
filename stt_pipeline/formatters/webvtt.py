"""WebVTT subtitle formatter.

WHY: Browsers' <track> element only accepts WebVTT, so web players need
the same cues as the SRT file in this format.

HOW: Same cue list as the SRT formatter (reflow_cues), rendered after the
mandatory "WEBVTT" header with dot-separated milliseconds and no indices.

RULES:
- File starts with "WEBVTT" and a blank line, even when there are no cues
- Timestamp format: HH:MM:SS.mmm
- Output suffix: ".vtt"
- Media type: "text/vtt"
"""

from __future__ import annotations

from typing import List

from stt_pipeline.core.ir import Cue, Transcript
from stt_pipeline.core.reflow import reflow_cues
from stt_pipeline.formatters.base import BaseFormatter, FormatterOutput
from stt_pipeline.formatters.srt_captions import split_millis


def seconds_to_vtt_time(seconds: float) -> str:
    return "{:02d}:{:02d}:{:02d}.{:03d}".format(*split_millis(seconds))


def generate_vtt(cues: List[Cue]) -> str:
    lines = ["WEBVTT", ""]
    for cue in cues:
        lines.append("{} --> {}".format(
            seconds_to_vtt_time(cue.start_s), seconds_to_vtt_time(cue.end_s)
        ))
        lines.append(cue.text)
        lines.append("")
    return "\n".join(lines)


class WebVTTFormatter(BaseFormatter):
    record_field = "vtt_file"

    @property
    def name(self) -> str:
        return "WebVTT Subtitles"

    def format(self, transcript: Transcript) -> FormatterOutput:
        return FormatterOutput(
            suffix=".vtt",
            content=generate_vtt(reflow_cues(transcript.words)),
            media_type="text/vtt",
        )
