"""Tests for the command-line interface.

HOW: main() is called with an explicit argv. Components that would reach
external services are patched at the cli module's import sites.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from stt_pipeline.cli import build_parser, main
from stt_pipeline.engine.base import EngineError, EngineErrorKind, PollResult


@pytest.fixture
def env(tmp_path, monkeypatch):
    """Point Settings at a temp storage root and an empty .env file."""
    env_file = tmp_path / ".env"
    env_file.write_text("")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "data"))
    return ["--env-file", str(env_file)]


@pytest.fixture
def patched_engine(engine):
    with patch("stt_pipeline.cli._engine_factory", return_value=lambda: engine):
        yield engine


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_submit_requires_lang(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["submit", "gs://ingest/a.wav"])

    def test_submit_defaults(self):
        args = build_parser().parse_args(["submit", "gs://ingest/a.wav", "--lang", "en-US"])
        assert args.fps == 0
        assert args.sample_rate == 0
        assert args.encoding == ""


class TestTimecode:
    def test_prints_timecodes(self, capsys):
        main(["timecode", "5460", "1.5", "--fps", "100"])
        assert capsys.readouterr().out.splitlines() == ["01:31:00:00", "00:00:01:50"]

    def test_default_fps(self, capsys):
        main(["timecode", "1860"])
        assert capsys.readouterr().out.strip() == "00:31:00:00"


class TestSubmitAndHarvest:
    def test_submit(self, env, patched_engine, capsys, tmp_path):
        main(env + ["submit", "gs://ingest/talks/a.wav", "--lang", "en-US", "--encoding", "FLAC"])
        out = json.loads(capsys.readouterr().out)
        assert out == {"key": "status/ingest/talks/a.wav.json", "job_id": "op-1"}
        assert (tmp_path / "data" / "ingest" / "status" / "ingest" / "talks" / "a.wav.json").is_file()

    def test_submit_rejected_exits_1(self, env, patched_engine, capsys):
        patched_engine.submit_error = EngineError(EngineErrorKind.NOT_FOUND, "missing")
        with pytest.raises(SystemExit) as exc_info:
            main(env + ["submit", "gs://ingest/talks/a.wav", "--lang", "en-US"])
        assert exc_info.value.code == 1
        assert "404" in capsys.readouterr().err

    def test_harvest_completes_job(self, env, patched_engine, capsys, tmp_path, sample_results):
        main(env + ["submit", "gs://ingest/talks/a.wav", "--lang", "en-US"])
        capsys.readouterr()
        patched_engine.jobs["op-1"] = PollResult(done=True, results=sample_results)

        main(env + ["harvest", "--concurrency", "2"])

        report = json.loads(capsys.readouterr().out)
        assert report["completed"] == 1
        assert (tmp_path / "data" / "results" / "ingest" / "talks" / "a.wav.srt").is_file()

    def test_purge(self, env, capsys):
        main(env + ["purge", "--ttl", "60"])
        assert json.loads(capsys.readouterr().out) == {"purged": 0}

    def test_bad_backend_exits_1(self, env, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "floppy")
        with pytest.raises(SystemExit) as exc_info:
            main(env + ["purge"])
        assert exc_info.value.code == 1
