"""Abstract base formatter and output container.

WHY: Every artifact written for a finished job (timestamped text, SRT,
WebVTT, raw JSON) consumes the same Transcript IR but produces different
file content. This base class enforces one interface so the harvester can
run every registered formatter generically.

HOW: BaseFormatter is an ABC with a ``name`` property, a ``record_field``
class attribute naming the JobRecord field that references the artifact,
and a ``format()`` method. FormatterOutput bundles the file suffix with its
content and MIME type.

RULES:
- Subclasses MUST implement ``name`` and ``format()`` and set ``record_field``
- ``suffix`` is appended to the bucket-qualified source path, e.g.
  ``"ingest/talks/a.wav"`` + ``".srt"`` → ``"ingest/talks/a.wav.srt"``
- Formatters never touch storage; the caller writes the content
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from stt_pipeline.core.ir import Transcript


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: Appended to the source object path, e.g. ``".txt"``.
        content: The file content.
        media_type: MIME type for the content, e.g. ``"text/plain"``.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter, set record_field
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    record_field: str = ""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'SRT Subtitles'."""

    @abstractmethod
    def format(self, transcript: Transcript) -> FormatterOutput:
        """Convert the Transcript IR into one output file."""
