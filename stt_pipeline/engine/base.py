"""Abstract transcription engine boundary.

WHY: The ingest coordinator and the harvester only need two operations
from the engine: start a long-running job and ask whether it has finished.
Keeping them behind an abstract class lets tests run against an in-memory
fake and keeps provider error codes out of the core.

HOW: TranscriptionEngine is an async context manager ABC with submit_job()
and poll_job(). Implementations map provider failures to EngineError with
one of three EngineErrorKind values, exactly once, at this boundary.

RULES:
- submit_job() returns an opaque, non-empty job handle
- poll_job() returns PollResult(done=False) while the job runs
- A job that finished with an error is reported by raising EngineError
- The core never inspects provider-specific codes
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List


class EngineErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"
    OTHER = "other"


class EngineError(Exception):
    """Raised for every failure reported by or on the way to the engine."""

    def __init__(self, kind: EngineErrorKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__("{}: {}".format(kind.value, message))


@dataclass
class PollResult:
    """Outcome of polling one job.

    RULES:
    - results is empty while done is False
    - results holds raw recognition results (dicts with "alternatives")
    """

    done: bool
    results: List[Dict[str, Any]] = field(default_factory=list)


class TranscriptionEngine(ABC):
    """Long-running transcription service seen from the job pipeline."""

    async def __aenter__(self) -> TranscriptionEngine:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        return None

    @abstractmethod
    async def submit_job(
        self,
        audio_uri: str,
        encoding: str,
        sample_rate: int,
        language: str,
    ) -> str:
        """Start a long-running transcription and return its job handle."""

    @abstractmethod
    async def poll_job(self, job_id: str) -> PollResult:
        """Return the current state of a job started by submit_job()."""
