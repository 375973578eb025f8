"""Raw recognition results formatter.

WHY: The reflowed outputs drop confidence scores and the engine's own
punctuated transcript. Keeping the raw results next to them lets anyone
re-render or audit a job without re-running recognition.

RULES:
- Content: {"source", "transcript", "results"} as indented UTF-8 JSON
- Output suffix: ".json"
- Media type: "application/json"
"""

from __future__ import annotations

import json

from stt_pipeline.adapters.result_adapter import results_to_transcript_text
from stt_pipeline.core.ir import Transcript
from stt_pipeline.formatters.base import BaseFormatter, FormatterOutput


class RawJSONFormatter(BaseFormatter):
    record_field = "json_file"

    @property
    def name(self) -> str:
        return "Raw Results JSON"

    def format(self, transcript: Transcript) -> FormatterOutput:
        payload = {
            "source": transcript.source,
            "transcript": results_to_transcript_text(transcript.results),
            "results": transcript.results,
        }
        return FormatterOutput(
            suffix=".json",
            content=json.dumps(payload, indent=2, ensure_ascii=False) + "\n",
            media_type="application/json",
        )
