"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. Pydantic
models enforce field types at runtime and generate the JSON Schema shown
in the /docs UI.

HOW: One model per request body or response payload. All fields carry
Field descriptions for the OpenAPI docs.

RULES:
- Request field names match the ingest JSON contract exactly
  (file, lang, encoding, sample_rate, fps)
- JobRecordResponse mirrors the persisted record's field names
- Python 3.9+ style annotations (Optional from typing, no PEP 604 unions)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class IngestBody(BaseModel):
    """Body of POST /ingest."""

    file: str = Field(description="Source audio URI, e.g. 'gs://ingest/talks/a.wav'.")
    lang: str = Field(description="BCP-47 language code of the audio, e.g. 'en-US'.")
    encoding: str = Field(
        default="",
        description="Audio encoding identifier: PCM, LINEAR16, OPUS, OGG_OPUS or FLAC.",
    )
    sample_rate: int = Field(default=0, ge=0, description="Sample rate in Hz (0 = let the engine detect it).")
    fps: Optional[int] = Field(
        default=None,
        description="Frame rate for HH:MM:SS:FF timestamps. Defaults to 25 when unset or outside 1-1000.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "file": "gs://ingest/talks/keynote.wav",
                "lang": "en-US",
                "encoding": "PCM",
                "sample_rate": 48000,
                "fps": 25,
            }
        ]
    }}


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class IngestResponse(BaseModel):
    """Returned once the engine has accepted a job."""

    key: str = Field(description="Job record key in the ingest bucket.")
    job_id: str = Field(description="Engine job handle.")
    status: str = Field(description="Initial job status (always 'processing').")


class HarvestResponse(BaseModel):
    """Counts from one harvest pass."""

    listed: int = Field(description="Record keys found under the status prefix.")
    processed: int = Field(description="Jobs moved to a terminal state in this pass.")
    completed: int = Field(description="Jobs completed in this pass.")
    failed: int = Field(description="Jobs moved to error in this pass.")
    pending: int = Field(description="Jobs still running at the engine.")
    skipped: int = Field(description="Keys skipped (terminal, unsubmitted, or unreadable).")


class PurgeResponse(BaseModel):
    purged: int = Field(description="Completed records removed.")


class JobRecordResponse(BaseModel):
    """A job record as stored."""

    file: str = Field(description="Source audio URI.")
    lang: str = Field(description="Language code.")
    encoding: str = Field(description="Audio encoding identifier.")
    sample_rate: int = Field(description="Sample rate in Hz.")
    fps: int = Field(description="Frame rate used for timestamps.")
    job_id: str = Field(description="Engine job handle (empty until accepted).")
    status: str = Field(description="processing, completed or error.")
    error: str = Field(description="Error message, only set when status is 'error'.")
    source: str = Field(description="Source object path inside its bucket.")
    txt_file: str = Field(description="Timestamped text artifact, once completed.")
    srt_file: str = Field(description="SRT artifact, once completed.")
    vtt_file: str = Field(description="WebVTT artifact, once completed.")
    json_file: str = Field(description="Raw results artifact, once completed.")
    created_at: float = Field(description="Record creation time (Unix epoch seconds).")
    updated_at: float = Field(description="Last change (Unix epoch seconds).")
    completed_at: Optional[float] = Field(default=None, description="Terminal transition time.")


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
