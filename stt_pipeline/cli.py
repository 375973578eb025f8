"""Command-line interface for the speech-to-text job pipeline.

WHY: Operators need the same operations the HTTP API offers without going
through HTTP: serving the API, submitting a file, running a harvest pass
from cron, pruning old records, and checking how a timestamp will render.

HOW: argparse with one subcommand per operation. Each subcommand builds
Settings from the environment (plus an optional --env-file), wires the
components it needs, and runs the async parts via asyncio.run(). Results go
to stdout; status and errors go to stderr.

RULES:
- Subcommands: serve, submit, harvest, purge, timecode
- Exit code 0 on success, 1 on any handled error, 2 on usage errors
- No shared secret is needed locally: the CLI talks to storage directly
- logging.basicConfig is only called here, never in library modules
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Callable, List, Optional

from stt_pipeline import __version__
from stt_pipeline.config import Settings
from stt_pipeline.core.timecode import format_timecode
from stt_pipeline.engine.base import TranscriptionEngine
from stt_pipeline.engine.client import SpeechClient
from stt_pipeline.exceptions import HarvestTimeoutError, IngestError, StorageError
from stt_pipeline.jobs.harvest import ResultHarvester
from stt_pipeline.jobs.ingest import IngestCoordinator
from stt_pipeline.jobs.models import IngestRequest
from stt_pipeline.jobs.store import JobRecordStore
from stt_pipeline.storage import create_object_store

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _engine_factory(settings: Settings) -> Callable[[], TranscriptionEngine]:
    def factory() -> TranscriptionEngine:
        return SpeechClient.from_settings(settings)

    return factory


def _load_settings(args: argparse.Namespace) -> Settings:
    try:
        return Settings.from_env(args.env_file)
    except ValueError as e:
        _status("Error: {}".format(e))
        sys.exit(1)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_serve(args: argparse.Namespace) -> None:
    from stt_pipeline.server.app import run_api

    run_api(host=args.host, port=args.port, settings=_load_settings(args))


def _cmd_submit(args: argparse.Namespace) -> None:
    settings = _load_settings(args)
    records = JobRecordStore(create_object_store(settings), settings.ingest_bucket)
    coordinator = IngestCoordinator(records, _engine_factory(settings))
    request = IngestRequest(
        file=args.file,
        lang=args.lang,
        encoding=args.encoding,
        sample_rate=args.sample_rate,
        fps=args.fps,
    )

    try:
        result = asyncio.run(coordinator.submit(request))
    except IngestError as e:
        _status("Error ({}): {}".format(e.status_code, e.message))
        sys.exit(1)

    _status("Submitted {} as job {}".format(args.file, result.job_id))
    print(json.dumps({"key": result.key, "job_id": result.job_id}))


def _cmd_harvest(args: argparse.Namespace) -> None:
    settings = _load_settings(args)
    objects = create_object_store(settings)
    harvester = ResultHarvester(
        JobRecordStore(objects, settings.ingest_bucket),
        objects,
        settings.result_bucket,
        _engine_factory(settings),
        concurrency=args.concurrency or settings.harvest_concurrency,
        timeout=args.timeout if args.timeout is not None else settings.harvest_timeout_s,
    )

    try:
        report = asyncio.run(harvester.harvest())
    except HarvestTimeoutError as e:
        _status("Error: {}".format(e))
        sys.exit(1)
    except StorageError as e:
        _status("Error: unable to list records: {}".format(e))
        sys.exit(1)

    print(json.dumps({
        "listed": report.listed,
        "processed": report.processed,
        "completed": report.completed,
        "failed": report.failed,
        "pending": report.pending,
        "skipped": report.skipped,
    }))


def _cmd_purge(args: argparse.Namespace) -> None:
    settings = _load_settings(args)
    records = JobRecordStore(create_object_store(settings), settings.ingest_bucket)
    ttl = args.ttl if args.ttl is not None else settings.record_ttl_s

    try:
        purged = records.purge_expired(ttl)
    except StorageError as e:
        _status("Error: unable to list records: {}".format(e))
        sys.exit(1)

    _status("Purged {} completed record(s) older than {}s".format(purged, ttl))
    print(json.dumps({"purged": purged}))


def _cmd_timecode(args: argparse.Namespace) -> None:
    for value in args.seconds:
        print(format_timecode(value, args.fps))


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="stt-pipeline",
        description="Submit long-running transcriptions and harvest their "
                    "results as timestamped text, SRT and WebVTT files.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file (default: search from the current directory).",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: %(default)s).")
    serve.add_argument("--port", type=int, default=8086, help="Port (default: %(default)s).")
    serve.set_defaults(func=_cmd_serve)

    submit = sub.add_parser("submit", help="Start a transcription job for one file.")
    submit.add_argument("file", help="Source audio URI, e.g. gs://ingest/talks/a.wav.")
    submit.add_argument("--lang", required=True, help="BCP-47 language code, e.g. en-US.")
    submit.add_argument(
        "--encoding",
        default="",
        help="Audio encoding: PCM, LINEAR16, OPUS, OGG_OPUS or FLAC.",
    )
    submit.add_argument("--sample-rate", type=int, default=0, help="Sample rate in Hz.")
    submit.add_argument(
        "--fps",
        type=int,
        default=0,
        help="Frame rate for timestamps (default: 25).",
    )
    submit.set_defaults(func=_cmd_submit)

    harvest = sub.add_parser("harvest", help="Run one harvest pass.")
    harvest.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum concurrent engine polls (default: HARVEST_CONCURRENCY).",
    )
    harvest.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Deadline for the whole pass in seconds (default: HARVEST_TIMEOUT_S).",
    )
    harvest.set_defaults(func=_cmd_harvest)

    purge = sub.add_parser("purge", help="Remove expired completed records.")
    purge.add_argument(
        "--ttl",
        type=int,
        default=None,
        help="Retention in seconds (default: RECORD_TTL_S).",
    )
    purge.set_defaults(func=_cmd_purge)

    timecode = sub.add_parser("timecode", help="Render elapsed seconds as HH:MM:SS:FF.")
    timecode.add_argument("seconds", type=float, nargs="+", help="Elapsed seconds.")
    timecode.add_argument("--fps", type=int, default=25, help="Frame rate (default: %(default)s).")
    timecode.set_defaults(func=_cmd_timecode)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``stt-pipeline`` console script.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    args.func(args)


if __name__ == "__main__":
    main()
