"""FastAPI application exposing ingest, harvest, purge, and job inspection.

WHY: Uploaders submit audio already sitting in the ingest bucket and an
external scheduler triggers harvest passes every few minutes. Both need a
small authenticated HTTP surface; operators additionally need to look at a
job's record and prune old completed ones.

HOW: create_app() wires Settings, an ObjectStore, the record store, the
ingest coordinator, and the harvester together and registers the routes
on a new FastAPI app. Every route except /health requires the shared
secret as the "key" query parameter.

RULES:
- A wrong or missing key is rejected with 401 before any other work
- IngestError subclasses map to their own status codes
- A harvest pass returns 200 even when individual jobs fail; a listing
  failure returns 500 and a timeout 504
- The harvest trigger accepts GET and POST (schedulers differ)
- Components are built once per app; nothing reads the environment after
  create_app() returns
"""

from __future__ import annotations

import asyncio
import hmac
import logging
from typing import Annotated, Callable, Optional

from fastapi import Depends, FastAPI, HTTPException, Query

from stt_pipeline import __version__
from stt_pipeline.config import Settings
from stt_pipeline.engine.base import TranscriptionEngine
from stt_pipeline.engine.client import SpeechClient
from stt_pipeline.exceptions import (
    AuthorizationError,
    HarvestTimeoutError,
    IngestError,
    InvalidRequestError,
    MalformedRecordError,
    RecordNotFoundError,
    StorageError,
)
from stt_pipeline.jobs.harvest import ResultHarvester
from stt_pipeline.jobs.ingest import IngestCoordinator
from stt_pipeline.jobs.models import IngestRequest
from stt_pipeline.jobs.store import JobRecordStore
from stt_pipeline.server.models import (
    ErrorResponse,
    HarvestResponse,
    HealthResponse,
    IngestBody,
    IngestResponse,
    JobRecordResponse,
    PurgeResponse,
)
from stt_pipeline.storage import ObjectStore, create_object_store

logger = logging.getLogger(__name__)


def verify_key(expected: str, provided: Optional[str]) -> None:
    """Raise AuthorizationError unless provided matches the configured secret.

    An empty configured secret matches nothing.
    """
    if not expected or not hmac.compare_digest((provided or "").encode(), expected.encode()):
        raise AuthorizationError("Wrong key")


def create_app(
    settings: Optional[Settings] = None,
    objects: Optional[ObjectStore] = None,
    engine_factory: Optional[Callable[[], TranscriptionEngine]] = None,
) -> FastAPI:
    """Build the API app.

    Args:
        settings: Deployment settings; loaded from the environment if omitted.
        objects: Object store; built from settings if omitted.
        engine_factory: Returns a fresh engine context manager per use;
            defaults to SpeechClient configured from settings.
    """
    settings = settings or Settings.from_env()
    objects = objects or create_object_store(settings)
    if engine_factory is None:
        def engine_factory() -> TranscriptionEngine:
            return SpeechClient.from_settings(settings)

    records = JobRecordStore(objects, settings.ingest_bucket)
    coordinator = IngestCoordinator(records, engine_factory)
    harvester = ResultHarvester(
        records,
        objects,
        settings.result_bucket,
        engine_factory,
        concurrency=settings.harvest_concurrency,
        timeout=settings.harvest_timeout_s,
    )

    app = FastAPI(
        title="Speech-to-Text Job Pipeline API",
        description=(
            "Submit long-running transcriptions of audio in the ingest bucket, "
            "trigger harvest passes that turn finished jobs into timestamped "
            "text, SRT and WebVTT files, and inspect job records."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.records = records
    app.state.coordinator = coordinator
    app.state.harvester = harvester

    def require_key(
        key: Annotated[Optional[str], Query(description="Shared secret.")] = None,
    ) -> None:
        try:
            verify_key(settings.function_key, key)
        except AuthorizationError as exc:
            logger.warning("Rejected request with wrong key")
            raise HTTPException(status_code=401, detail=str(exc))

    unauthorized = {401: {"model": ErrorResponse, "description": "Wrong or missing key"}}

    # -----------------------------------------------------------------------
    # Endpoints: Jobs
    # -----------------------------------------------------------------------

    @app.post(
        "/ingest",
        response_model=IngestResponse,
        status_code=202,
        tags=["jobs"],
        summary="Start a transcription job",
        description=(
            "Starts a long-running transcription of an audio object and records "
            "it. Returns once the engine has accepted the job."
        ),
        responses={
            **unauthorized,
            400: {"model": ErrorResponse, "description": "Invalid request or argument"},
            404: {"model": ErrorResponse, "description": "Source file not found by the engine"},
            409: {"model": ErrorResponse, "description": "A record already exists for this file"},
            500: {"model": ErrorResponse, "description": "Engine or storage failure"},
        },
        dependencies=[Depends(require_key)],
    )
    async def ingest(body: IngestBody) -> IngestResponse:
        request = IngestRequest(
            file=body.file,
            lang=body.lang,
            encoding=body.encoding,
            sample_rate=body.sample_rate,
            fps=body.fps or 0,
        )
        try:
            result = await coordinator.submit(request)
        except IngestError as exc:
            raise HTTPException(status_code=exc.status_code, detail=exc.message)
        return IngestResponse(key=result.key, job_id=result.job_id, status="processing")

    @app.api_route(
        "/harvest",
        methods=["GET", "POST"],
        response_model=HarvestResponse,
        tags=["jobs"],
        summary="Run one harvest pass",
        description=(
            "Polls every processing job, writes artifacts for finished ones, "
            "and updates their records. Meant for a periodic scheduler."
        ),
        responses={
            **unauthorized,
            500: {"model": ErrorResponse, "description": "Record listing failed"},
            504: {"model": ErrorResponse, "description": "Pass exceeded its deadline"},
        },
        dependencies=[Depends(require_key)],
    )
    async def harvest() -> HarvestResponse:
        try:
            report = await harvester.harvest()
        except HarvestTimeoutError as exc:
            raise HTTPException(status_code=504, detail=str(exc))
        except StorageError as exc:
            logger.exception("Harvest listing failed")
            raise HTTPException(status_code=500, detail="Unable to list records: {}".format(exc))
        return HarvestResponse(
            listed=report.listed,
            processed=report.processed,
            completed=report.completed,
            failed=report.failed,
            pending=report.pending,
            skipped=report.skipped,
        )

    @app.post(
        "/purge",
        response_model=PurgeResponse,
        tags=["jobs"],
        summary="Remove expired completed records",
        responses={**unauthorized},
        dependencies=[Depends(require_key)],
    )
    async def purge() -> PurgeResponse:
        try:
            purged = await asyncio.to_thread(records.purge_expired, settings.record_ttl_s)
        except StorageError as exc:
            raise HTTPException(status_code=500, detail="Unable to list records: {}".format(exc))
        return PurgeResponse(purged=purged)

    @app.get(
        "/jobs/{source:path}",
        response_model=JobRecordResponse,
        tags=["jobs"],
        summary="Get a job record",
        description="Looks up the record for '<bucket>/<object path>' of a submitted file.",
        responses={
            **unauthorized,
            404: {"model": ErrorResponse, "description": "No record for this file"},
        },
        dependencies=[Depends(require_key)],
    )
    async def get_job(source: str) -> JobRecordResponse:
        try:
            key = records.key_for("store://{}".format(source))
            record = await asyncio.to_thread(records.read, key)
        except InvalidRequestError as exc:
            raise HTTPException(status_code=400, detail=exc.message)
        except RecordNotFoundError:
            raise HTTPException(status_code=404, detail="No job record for {}".format(source))
        except (MalformedRecordError, StorageError) as exc:
            raise HTTPException(status_code=500, detail=str(exc))
        return JobRecordResponse(**record.to_dict())

    # -----------------------------------------------------------------------
    # Endpoints: Health
    # -----------------------------------------------------------------------

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["health"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    return app


def run_api(host: str = "0.0.0.0", port: int = 8086, settings: Optional[Settings] = None) -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(create_app(settings), host=host, port=port)
