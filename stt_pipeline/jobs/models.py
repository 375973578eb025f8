"""Job record dataclasses and the job state machine.

WHY: A job's whole lifecycle is persisted as one JSON record per source
object. Readers in other processes (the harvester, the inspection
endpoint) rely on that record alone, so its shape and its legal state
changes must be defined in exactly one place.

HOW: Three pieces:
  JobStatus     — enum of the three states
  IngestRequest — the validated submission, embedded in every record
  JobRecord     — the persisted state-machine instance
transition() is the single authority on state changes; JobRecord's
with_job_id(), complete() and fail() all go through it.

RULES:
- processing → completed and processing → error are the only transitions
- completed and error are terminal
- job_id may only be set once, while processing
- to_dict()/from_dict() use the on-disk field names
  (file, lang, encoding, sample_rate, fps, job_id, status, error, source,
  txt_file, srt_file, vtt_file, json_file, created_at, updated_at,
  completed_at)
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

from stt_pipeline.core.timecode import resolve_fps
from stt_pipeline.exceptions import IllegalTransitionError, InvalidRequestError


class JobStatus(str, enum.Enum):
    """Valid states for a transcription job.

    HOW: Inherits from str so values serialize cleanly to JSON.
    """

    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


_TRANSITIONS: Dict[JobStatus, Tuple[JobStatus, ...]] = {
    JobStatus.PROCESSING: (JobStatus.COMPLETED, JobStatus.ERROR),
    JobStatus.COMPLETED: (),
    JobStatus.ERROR: (),
}


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return target in _TRANSITIONS[current]


def parse_source_uri(uri: str) -> Tuple[str, str]:
    """Split ``scheme://bucket/path/to/object`` into (bucket, object path).

    Raises:
        InvalidRequestError: The URI has no scheme, bucket, or object path,
            or the path contains empty, "." or ".." segments.
    """
    parsed = urlparse(uri or "")
    bucket = parsed.netloc
    path = parsed.path.lstrip("/")
    if not parsed.scheme or not bucket or not path:
        raise InvalidRequestError("Unable to parse file url: {!r}".format(uri))
    if any(part in ("", ".", "..") for part in path.split("/")):
        raise InvalidRequestError("Illegal object path in file url: {!r}".format(uri))
    return bucket, path


@dataclass(frozen=True)
class IngestRequest:
    """A submitted transcription request.

    RULES:
    - file: source URI, e.g. "gs://ingest/talks/a.wav"
    - fps: frame rate for timestamped output; normalized() applies the
      default for unset or out-of-range values
    """

    file: str
    lang: str
    encoding: str
    sample_rate: int = 0
    fps: int = 0

    def normalized(self) -> IngestRequest:
        """Return a copy with the frame rate defaulted and the URI validated."""
        parse_source_uri(self.file)
        if not self.lang:
            raise InvalidRequestError("Missing language code")
        if self.sample_rate < 0:
            raise InvalidRequestError("sample_rate must not be negative")
        return replace(self, fps=resolve_fps(self.fps, warn=False))

    @property
    def bucket(self) -> str:
        return parse_source_uri(self.file)[0]

    @property
    def source(self) -> str:
        return parse_source_uri(self.file)[1]


@dataclass(frozen=True)
class JobRecord:
    """The persisted state of one job.

    RULES:
    - Frozen: every change produces a new record via transition()
    - error is only non-empty in ERROR state
    - Output references are only set in COMPLETED state
    """

    request: IngestRequest
    status: JobStatus = JobStatus.PROCESSING
    job_id: str = ""
    error: str = ""
    source: str = ""
    txt_file: str = ""
    srt_file: str = ""
    vtt_file: str = ""
    json_file: str = ""
    created_at: float = 0.0
    updated_at: float = 0.0
    completed_at: Optional[float] = None

    @classmethod
    def new(cls, request: IngestRequest, now: Optional[float] = None) -> JobRecord:
        """Initial record for an accepted request: processing, no job_id yet."""
        now = time.time() if now is None else now
        return cls(
            request=request,
            status=JobStatus.PROCESSING,
            source=request.source,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_submitted(self) -> bool:
        return bool(self.job_id)

    def with_job_id(self, job_id: str, now: Optional[float] = None) -> JobRecord:
        if self.status != JobStatus.PROCESSING:
            raise IllegalTransitionError(
                "Cannot attach a job_id to a {} record".format(self.status.value)
            )
        if self.job_id:
            raise IllegalTransitionError("Record already has job_id {}".format(self.job_id))
        if not job_id:
            raise IllegalTransitionError("job_id must not be empty")
        return replace(self, job_id=job_id, updated_at=time.time() if now is None else now)

    def complete(self, outputs: Dict[str, str], now: Optional[float] = None) -> JobRecord:
        """Move to COMPLETED, recording the artifact references.

        Args:
            outputs: Maps record fields (txt_file, srt_file, ...) to object names.
        """
        return transition(self, JobStatus.COMPLETED, now=now, **outputs)

    def fail(self, message: str, now: Optional[float] = None) -> JobRecord:
        return transition(self, JobStatus.ERROR, now=now, error=message or "unknown error")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.request.file,
            "lang": self.request.lang,
            "encoding": self.request.encoding,
            "sample_rate": self.request.sample_rate,
            "fps": self.request.fps,
            "job_id": self.job_id,
            "status": self.status.value,
            "error": self.error,
            "source": self.source,
            "txt_file": self.txt_file,
            "srt_file": self.srt_file,
            "vtt_file": self.vtt_file,
            "json_file": self.json_file,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "completed_at": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> JobRecord:
        """Parse a record from its JSON form.

        RULES:
        - file and status are required; other fields default when absent
        - Unknown status values raise ValueError
        """
        request = IngestRequest(
            file=str(data["file"]),
            lang=str(data.get("lang", "")),
            encoding=str(data.get("encoding", "")),
            sample_rate=int(data.get("sample_rate") or 0),
            fps=int(data.get("fps") or 0),
        )
        completed_at = data.get("completed_at")
        return cls(
            request=request,
            status=JobStatus(data["status"]),
            job_id=str(data.get("job_id") or ""),
            error=str(data.get("error") or ""),
            source=str(data.get("source") or "") or request.source,
            txt_file=str(data.get("txt_file") or ""),
            srt_file=str(data.get("srt_file") or ""),
            vtt_file=str(data.get("vtt_file") or ""),
            json_file=str(data.get("json_file") or ""),
            created_at=float(data.get("created_at") or 0.0),
            updated_at=float(data.get("updated_at") or 0.0),
            completed_at=float(completed_at) if completed_at is not None else None,
        )


_OUTPUT_FIELDS = ("txt_file", "srt_file", "vtt_file", "json_file")


def transition(
    record: JobRecord,
    target: JobStatus,
    now: Optional[float] = None,
    error: str = "",
    **outputs: str,
) -> JobRecord:
    """Return record moved to target, or raise IllegalTransitionError.

    RULES:
    - Only the transitions in _TRANSITIONS are accepted
    - ERROR requires a message; COMPLETED rejects one
    - Output references are only accepted for COMPLETED
    - completed_at is stamped on every terminal transition
    """
    if not can_transition(record.status, target):
        raise IllegalTransitionError(
            "Illegal transition {} -> {}".format(record.status.value, target.value)
        )
    unknown = set(outputs) - set(_OUTPUT_FIELDS)
    if unknown:
        raise IllegalTransitionError("Unknown output fields: {}".format(", ".join(sorted(unknown))))
    if target == JobStatus.ERROR and not error:
        raise IllegalTransitionError("An error transition needs a message")
    if target != JobStatus.ERROR and error:
        raise IllegalTransitionError("Only error transitions carry a message")
    if target != JobStatus.COMPLETED and outputs:
        raise IllegalTransitionError("Only completed transitions carry outputs")

    now = time.time() if now is None else now
    return replace(
        record,
        status=target,
        error=error,
        updated_at=now,
        completed_at=now if target.is_terminal else record.completed_at,
        **outputs,
    )
