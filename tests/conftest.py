"""Shared test fixtures for the stt_pipeline test suite.

WHY: Ingest, harvest, and API tests all need the same building blocks: a
filesystem object store rooted in a temp directory, a record store on top
of it, an engine that never touches the network, and a realistic set of
recognition results.

HOW: FakeEngine implements TranscriptionEngine in memory. Tests script its
behaviour by filling ``submit_error``, ``jobs`` (job_id -> PollResult or
EngineError), and ``poll_delay``. It also counts concurrent polls so the
harvester's concurrency cap can be checked.

RULES:
- Every fixture is function-scoped; no state leaks between tests
- SAMPLE_RESULTS uses the v1 REST shape ("1.500s" duration strings)
- The engine factory returns the same FakeEngine on every call, so tests
  can inspect calls made through any context
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Union

import pytest

from stt_pipeline.config import Settings
from stt_pipeline.engine.base import EngineError, PollResult, TranscriptionEngine
from stt_pipeline.jobs.models import IngestRequest, JobRecord
from stt_pipeline.jobs.store import JobRecordStore
from stt_pipeline.storage.local import LocalObjectStore


# ---------------------------------------------------------------------------
# Sample recognition results (two results, first alternative wins)
# ---------------------------------------------------------------------------

SAMPLE_RESULTS: List[Dict[str, Any]] = [
    {
        "alternatives": [
            {
                "transcript": "Good morning and welcome to the quarterly review",
                "confidence": 0.94,
                "words": [
                    {"word": "Good",      "startTime": "0s",     "endTime": "0.300s"},
                    {"word": "morning",   "startTime": "0.300s", "endTime": "0.800s"},
                    {"word": "and",       "startTime": "0.900s", "endTime": "1s"},
                    {"word": "welcome",   "startTime": "1s",     "endTime": "1.500s"},
                    {"word": "to",        "startTime": "1.500s", "endTime": "1.600s"},
                    {"word": "the",       "startTime": "1.600s", "endTime": "1.700s"},
                    {"word": "quarterly", "startTime": "1.700s", "endTime": "2.300s"},
                    {"word": "review",    "startTime": "2.300s", "endTime": "2.900s"},
                ],
            },
            {
                "transcript": "Good morning and welcome to the quarterly revue",
                "confidence": 0.41,
                "words": [],
            },
        ],
    },
    {
        "alternatives": [
            {
                "transcript": " Let's start with the numbers.",
                "confidence": 0.91,
                "words": [
                    {"word": "Let's",    "startTime": "3.100s", "endTime": "3.400s"},
                    {"word": "start",    "startTime": "3.400s", "endTime": "3.700s"},
                    {"word": "with",     "startTime": "3.700s", "endTime": "3.900s"},
                    {"word": "the",      "startTime": "3.900s", "endTime": "4s"},
                    {"word": "numbers.", "startTime": "4s",     "endTime": "4.600s"},
                ],
            },
        ],
    },
]

SOURCE_URI = "gs://ingest/talks/review.wav"
SOURCE_KEY = "status/ingest/talks/review.wav.json"


# ---------------------------------------------------------------------------
# Fake engine
# ---------------------------------------------------------------------------


class FakeEngine(TranscriptionEngine):
    """In-memory TranscriptionEngine for tests."""

    def __init__(self) -> None:
        self.submitted: List[Dict[str, Any]] = []
        self.polled: List[str] = []
        self.submit_error: Optional[Exception] = None
        self.jobs: Dict[str, Union[PollResult, EngineError]] = {}
        self.poll_delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0
        self.entered = 0

    async def __aenter__(self) -> FakeEngine:
        self.entered += 1
        return self

    async def submit_job(self, audio_uri: str, encoding: str, sample_rate: int, language: str) -> str:
        self.submitted.append({
            "audio_uri": audio_uri,
            "encoding": encoding,
            "sample_rate": sample_rate,
            "language": language,
        })
        if self.submit_error is not None:
            raise self.submit_error
        job_id = "op-{}".format(len(self.submitted))
        self.jobs.setdefault(job_id, PollResult(done=False))
        return job_id

    async def poll_job(self, job_id: str) -> PollResult:
        self.polled.append(job_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.poll_delay)
            outcome = self.jobs.get(job_id, PollResult(done=False))
            if isinstance(outcome, EngineError):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_results():
    return [dict(r) for r in SAMPLE_RESULTS]


@pytest.fixture
def object_store(tmp_path):
    return LocalObjectStore(tmp_path / "data")


@pytest.fixture
def records(object_store):
    return JobRecordStore(object_store, "ingest")


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def engine_factory(engine):
    return lambda: engine


@pytest.fixture
def settings(tmp_path):
    return Settings(
        function_key="s3cret",
        storage_root=str(tmp_path / "data"),
        harvest_concurrency=4,
        harvest_timeout_s=30.0,
    )


@pytest.fixture
def seed_job(records, object_store):
    """Write a submitted PROCESSING record (and its source audio) for a URI.

    Returns the record key.
    """

    def _seed(uri: str = SOURCE_URI, job_id: str = "op-1", fps: int = 25, source_bytes: bytes = b"RIFF") -> str:
        request = IngestRequest(file=uri, lang="en-US", encoding="PCM", sample_rate=16000, fps=fps)
        record = JobRecord.new(request, now=1000.0)
        if job_id:
            record = record.with_job_id(job_id, now=1001.0)
        key = records.key_for(uri)
        records.write(key, record)
        object_store.put(request.bucket, request.source, source_bytes)
        return key

    return _seed
