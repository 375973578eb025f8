"""Ingest coordinator: validate, de-duplicate, submit, and record a job.

WHY: A submission has to leave behind exactly one record per source file,
and that record must end up carrying the engine's job handle so a later
harvest pass can find the result. Duplicate submissions of a file that
already has a record are refused before the engine is ever called.

HOW: submit() runs five sequential steps:
  1. normalize the request (frame-rate default, URI validation)
  2. refuse with ConflictError if a record already exists
  3. write an initial PROCESSING record with an empty job_id
  4. start the engine job; on any failure delete the initial record
  5. rewrite the record with the job_id
Storage calls run in a worker thread; the engine call is awaited.

RULES:
- An existing record means conflict, whatever its status
- Engine refusals map to 404 (not found), 400 (invalid argument), 500 (other)
- The initial record is deleted best-effort when the engine refuses or
  fails unexpectedly; unexpected failures map to 500
- If the job_id rewrite fails the engine job is orphaned: this is logged
  at CRITICAL with the job handle and raised as ReconciliationError
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from stt_pipeline.engine.base import EngineError, EngineErrorKind, TranscriptionEngine
from stt_pipeline.exceptions import (
    ConflictError,
    EngineRejectedError,
    IngestError,
    ReconciliationError,
    RecordWriteError,
    StorageError,
)
from stt_pipeline.jobs.models import IngestRequest, JobRecord
from stt_pipeline.jobs.store import JobRecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestResult:
    key: str
    job_id: str


def _rejection(request: IngestRequest, error: EngineError) -> EngineRejectedError:
    if error.kind == EngineErrorKind.NOT_FOUND:
        return EngineRejectedError('Could not locate file "{}"'.format(request.file), 404)
    if error.kind == EngineErrorKind.INVALID_ARGUMENT:
        return EngineRejectedError('Illegal argument: "{}"'.format(error.message), 400)
    return EngineRejectedError("Error starting job", 500)


class IngestCoordinator:
    """Accepts transcription requests and starts their engine jobs."""

    def __init__(
        self,
        records: JobRecordStore,
        engine_factory: Callable[[], TranscriptionEngine],
    ) -> None:
        self._records = records
        self._engine_factory = engine_factory

    async def submit(self, request: IngestRequest) -> IngestResult:
        """Submit one request.

        Raises:
            IngestError: One of its subclasses, carrying the status code.
        """
        request = request.normalized()
        key = self._records.key_for(request.file)

        try:
            exists = await asyncio.to_thread(self._records.exists, key)
        except StorageError as exc:
            logger.exception("Unable to check status file %s", key)
            raise IngestError("Unable to check status file: {}".format(exc)) from exc
        if exists:
            raise ConflictError("File is already in progress: {}".format(request.file))

        record = JobRecord.new(request)
        try:
            await asyncio.to_thread(self._records.write, key, record)
        except StorageError as exc:
            logger.exception("Unable to write status file %s", key)
            raise RecordWriteError("Unable to write status file: {}".format(exc)) from exc

        try:
            async with self._engine_factory() as engine:
                job_id = await engine.submit_job(
                    request.file,
                    request.encoding,
                    request.sample_rate,
                    request.lang,
                )
        except EngineError as exc:
            logger.warning("Engine refused %s: %s", request.file, exc)
            await asyncio.to_thread(self._records.delete, key)
            raise _rejection(request, exc) from exc
        except Exception as exc:
            logger.exception("Unexpected failure starting job for %s", request.file)
            await asyncio.to_thread(self._records.delete, key)
            raise EngineRejectedError("Error starting job", 500) from exc

        record = record.with_job_id(job_id)
        try:
            await asyncio.to_thread(self._records.write, key, record)
        except StorageError as exc:
            logger.critical(
                "RECONCILIATION GAP: engine job %s for %s is running but its "
                "record %s could not be updated: %s",
                job_id, request.file, key, exc,
            )
            raise ReconciliationError(
                "Job {} started but its status file could not be written".format(job_id),
                job_id=job_id,
            ) from exc

        logger.info("Submitted %s as job %s (record %s)", request.file, job_id, key)
        return IngestResult(key=key, job_id=job_id)
