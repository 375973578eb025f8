"""Output formatter registry.

WHY: The harvester writes one artifact per registered formatter for every
finished job. A central, ordered dict fixes both the set of artifacts and
the order in which they are written.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["srt"]()``.

RULES:
- Insertion order is write order: plain text, SRT, WebVTT, raw JSON
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from stt_pipeline.formatters.plain_text import PlainTextFormatter
from stt_pipeline.formatters.raw_json import RawJSONFormatter
from stt_pipeline.formatters.srt_captions import SRTCaptionFormatter
from stt_pipeline.formatters.webvtt import WebVTTFormatter

if TYPE_CHECKING:
    from stt_pipeline.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "plain_text": PlainTextFormatter,
    "srt": SRTCaptionFormatter,
    "webvtt": WebVTTFormatter,
    "raw_json": RawJSONFormatter,
}
