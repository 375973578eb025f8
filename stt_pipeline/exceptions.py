"""Exception hierarchy for the ingest, harvest, storage, and engine layers.

WHY: Callers need typed exceptions to tell apart a rejected submission, a
missing object, a malformed record, and an engine failure. The HTTP layer
maps IngestError subclasses straight to status codes, so every ingest
failure carries its own HTTP-equivalent category.

RULES:
- Everything raised on purpose derives from PipelineError
- IngestError subclasses carry status_code and a user-facing message
- EngineError lives in stt_pipeline.engine.base (engine boundary)
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for all errors raised by stt_pipeline."""


class AuthorizationError(PipelineError):
    """Raised when the shared secret on a request does not match."""


# ---------------------------------------------------------------------------
# Ingest
# ---------------------------------------------------------------------------


class IngestError(PipelineError):
    """A submission was refused.

    HOW: Wraps the HTTP-equivalent status code and a message that is safe
    to return to the caller.
    """

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        super().__init__(message)


class InvalidRequestError(IngestError):
    status_code = 400


class ConflictError(IngestError):
    """A record already exists for the submitted source object."""

    status_code = 409


class EngineRejectedError(IngestError):
    """The engine refused to start the job (not found, bad argument, other)."""


class RecordWriteError(IngestError):
    """The initial record could not be written; nothing was submitted."""

    status_code = 500


class ReconciliationError(IngestError):
    """The engine accepted the job but the job_id could not be persisted.

    The remote job keeps running with no record pointing at it.
    """

    status_code = 500

    def __init__(self, message: str, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(message)


# ---------------------------------------------------------------------------
# Storage and records
# ---------------------------------------------------------------------------


class StorageError(PipelineError):
    """An object store operation failed."""

    def __init__(self, bucket: str, name: str, reason: object) -> None:
        self.bucket = bucket
        self.name = name
        self.reason = reason
        super().__init__("{}/{}: {}".format(bucket, name, reason))


class ObjectNotFoundError(StorageError):
    def __init__(self, bucket: str, name: str) -> None:
        super().__init__(bucket, name, "object does not exist")


class RecordNotFoundError(PipelineError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__("No job record at {}".format(key))


class MalformedRecordError(PipelineError):
    def __init__(self, key: str, reason: object) -> None:
        self.key = key
        super().__init__("Malformed job record at {}: {}".format(key, reason))


class IllegalTransitionError(PipelineError):
    """A state change not allowed by the job state machine was attempted."""


# ---------------------------------------------------------------------------
# Harvest
# ---------------------------------------------------------------------------


class HarvestTimeoutError(PipelineError, TimeoutError):
    """A harvest pass did not finish within its deadline."""
