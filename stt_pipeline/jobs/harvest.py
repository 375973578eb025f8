"""Result harvester: poll every pending job and publish finished transcripts.

WHY: The engine works asynchronously, so nothing is notified when a job
finishes. A periodic trigger runs a harvest pass that looks at every job
record, asks the engine about the ones still processing, and for each
finished job writes the text and subtitle artifacts and moves the record
to a terminal state.

HOW: One pass takes a snapshot of the record keys, then runs one worker
coroutine per key through asyncio.gather, with an asyncio.Semaphore
capping how many talk to the engine at once. gather is the join barrier:
harvest() returns only after every worker has finished. Storage calls run
in worker threads via asyncio.to_thread so workers never block each other.

Per job, strictly in order:
  shape check → read → skip unless processing with a job_id → poll →
  reflow → write .txt, .srt, .vtt, .json → persist completed → delete source

RULES:
- Each key is handled by exactly one worker per pass
- Unreadable or malformed records are logged and skipped
- Records that are terminal, or processing without a job_id, are skipped
- Artifacts are named <source bucket>/<object path><suffix>, like record keys
- Poll failure, unparseable results, a formatter failure, or any artifact
  write failure → record moves to error; no partial artifact set is marked completed
- Source deletion after completion is best-effort
- A listing failure fails the whole pass; per-job failures never do
- Passes in one process are serialized; separate processes are NOT
  protected against each other (no cross-process lease)
- The whole pass is bounded by a timeout; on expiry outstanding workers
  are cancelled and HarvestTimeoutError is raised
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Type

from stt_pipeline.adapters.result_adapter import results_to_words
from stt_pipeline.core.ir import Transcript
from stt_pipeline.engine.base import EngineError, TranscriptionEngine
from stt_pipeline.exceptions import (
    HarvestTimeoutError,
    MalformedRecordError,
    RecordNotFoundError,
    StorageError,
)
from stt_pipeline.formatters import FORMATTERS
from stt_pipeline.formatters.base import BaseFormatter
from stt_pipeline.jobs.models import JobRecord, JobStatus
from stt_pipeline.jobs.store import JobRecordStore
from stt_pipeline.storage.base import ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 8


class Outcome(str, enum.Enum):
    """What one worker did with its record during a pass."""

    COMPLETED = "completed"
    FAILED = "failed"
    PENDING = "pending"
    SKIPPED = "skipped"


@dataclass
class HarvestReport:
    """Counts for one harvest pass.

    RULES:
    - listed: keys returned by the listing snapshot
    - processed: records moved to a terminal state by this pass
    """

    listed: int = 0
    completed: int = 0
    failed: int = 0
    pending: int = 0
    skipped: int = 0
    outcomes: Dict[str, Outcome] = field(default_factory=dict)

    @property
    def processed(self) -> int:
        return self.completed + self.failed

    def add(self, key: str, outcome: Outcome) -> None:
        self.outcomes[key] = outcome
        if outcome == Outcome.COMPLETED:
            self.completed += 1
        elif outcome == Outcome.FAILED:
            self.failed += 1
        elif outcome == Outcome.PENDING:
            self.pending += 1
        else:
            self.skipped += 1


class ResultHarvester:
    """Advances every pending job record as far as it can go in one pass."""

    def __init__(
        self,
        records: JobRecordStore,
        objects: ObjectStore,
        result_bucket: str,
        engine_factory: Callable[[], TranscriptionEngine],
        concurrency: int = DEFAULT_CONCURRENCY,
        timeout: Optional[float] = None,
        formatters: Optional[Sequence[Type[BaseFormatter]]] = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._records = records
        self._objects = objects
        self._result_bucket = result_bucket
        self._engine_factory = engine_factory
        self._concurrency = concurrency
        self._timeout = timeout
        self._formatters: List[Type[BaseFormatter]] = list(
            formatters if formatters is not None else FORMATTERS.values()
        )
        self._pass_lock = asyncio.Lock()

    async def harvest(self, timeout: Optional[float] = None) -> HarvestReport:
        """Run one harvest pass.

        Args:
            timeout: Deadline for the whole pass in seconds; defaults to the
                timeout given at construction (None = unbounded).

        Raises:
            StorageError: The record listing failed.
            HarvestTimeoutError: The pass did not finish in time.
        """
        deadline = self._timeout if timeout is None else timeout
        async with self._pass_lock:
            try:
                return await asyncio.wait_for(self._run_pass(), deadline)
            except asyncio.TimeoutError as exc:
                logger.error("Harvest pass exceeded its %.0fs deadline", deadline)
                raise HarvestTimeoutError(
                    "Harvest pass did not finish within {}s".format(deadline)
                ) from exc

    async def _run_pass(self) -> HarvestReport:
        keys = await asyncio.to_thread(lambda: list(self._records.list_pending()))
        report = HarvestReport(listed=len(keys))
        logger.info("Harvest pass: %d record(s) listed", len(keys))
        if not keys:
            return report

        semaphore = asyncio.Semaphore(self._concurrency)

        async with self._engine_factory() as engine:

            async def worker(key: str) -> Outcome:
                async with semaphore:
                    return await self._process_safely(key, engine)

            outcomes = await asyncio.gather(*(worker(key) for key in keys))

        for key, outcome in zip(keys, outcomes):
            report.add(key, outcome)

        logger.info(
            "Harvest pass done: %d completed, %d failed, %d pending, %d skipped",
            report.completed, report.failed, report.pending, report.skipped,
        )
        return report

    async def _process_safely(self, key: str, engine: TranscriptionEngine) -> Outcome:
        try:
            return await self._process(key, engine)
        except Exception:
            logger.exception("Unexpected failure while harvesting %s; left untouched", key)
            return Outcome.SKIPPED

    async def _process(self, key: str, engine: TranscriptionEngine) -> Outcome:
        if not self._records.is_record_key(key):
            logger.debug("Ignoring non-record object %s", key)
            return Outcome.SKIPPED

        try:
            record = await asyncio.to_thread(self._records.read, key)
        except (RecordNotFoundError, MalformedRecordError, StorageError) as exc:
            logger.warning("Skipping record %s: %s", key, exc)
            return Outcome.SKIPPED

        if record.status != JobStatus.PROCESSING:
            return Outcome.SKIPPED
        if not record.job_id:
            # Not sent to transcription yet. Take it next time
            logger.info("Record %s has no job_id yet, skipping", key)
            return Outcome.SKIPPED

        try:
            poll = await engine.poll_job(record.job_id)
        except EngineError as exc:
            return await self._fail(key, record, "Polling job {} failed: {}".format(record.job_id, exc.message))

        if not poll.done:
            logger.info("%s not done yet", record.job_id)
            return Outcome.PENDING

        try:
            transcript = Transcript(
                words=results_to_words(poll.results),
                fps=record.request.fps,
                source=record.source,
                results=poll.results,
            )
        except (ValueError, TypeError, AttributeError) as exc:
            return await self._fail(key, record, "Unreadable results for job {}: {}".format(record.job_id, exc))

        outputs: Dict[str, str] = {}
        for formatter_cls in self._formatters:
            formatter = formatter_cls()
            try:
                output = formatter.format(transcript)
            except Exception as exc:
                return await self._fail(key, record, "Unable to render {}: {}".format(formatter.name, exc))
            name = "{}/{}{}".format(record.request.bucket, record.source, output.suffix)
            try:
                await asyncio.to_thread(
                    self._objects.put,
                    self._result_bucket,
                    name,
                    output.content.encode("utf-8"),
                    output.media_type,
                )
            except StorageError as exc:
                return await self._fail(key, record, "Unable to write {}: {}".format(name, exc))
            outputs[formatter.record_field] = name

        completed = record.complete(outputs)
        try:
            await asyncio.to_thread(self._records.write, key, completed)
        except StorageError as exc:
            return await self._fail(key, record, "Unable to write status file: {}".format(exc))

        logger.info("Job %s completed: %d word(s) -> %s", record.job_id, len(transcript.words), ", ".join(sorted(outputs.values())))
        await self._delete_source(record)
        return Outcome.COMPLETED

    async def _fail(self, key: str, record: JobRecord, message: str) -> Outcome:
        logger.error("Job %s (%s) failed: %s", record.job_id, key, message)
        try:
            await asyncio.to_thread(self._records.write, key, record.fail(message))
        except StorageError:
            logger.exception("Unable to persist error state for %s", key)
        return Outcome.FAILED

    async def _delete_source(self, record: JobRecord) -> None:
        bucket = record.request.bucket
        try:
            await asyncio.to_thread(self._objects.delete, bucket, record.source)
        except StorageError:
            logger.warning("Failed to delete source %s/%s", bucket, record.source, exc_info=True)
