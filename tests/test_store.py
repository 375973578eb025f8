"""Tests for the durable job record store.

RULES:
- Each test gets its own LocalObjectStore under tmp_path
- Time-dependent tests pass ``now`` explicitly instead of patching time
"""

from __future__ import annotations

import json

import pytest

from stt_pipeline.exceptions import InvalidRequestError, MalformedRecordError, RecordNotFoundError
from stt_pipeline.jobs.models import IngestRequest, JobRecord, JobStatus


def _record(uri: str = "gs://ingest/talks/review.wav") -> JobRecord:
    request = IngestRequest(file=uri, lang="en-US", encoding="FLAC", sample_rate=0, fps=25)
    return JobRecord.new(request, now=100.0).with_job_id("op-1", now=100.0)


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


class TestKeys:
    def test_key_for(self, records):
        assert records.key_for("gs://ingest/dir/a.wav") == "status/ingest/dir/a.wav.json"

    def test_key_includes_bucket(self, records):
        assert records.key_for("gs://a/x.wav") != records.key_for("gs://b/x.wav")

    def test_key_for_invalid_uri(self, records):
        with pytest.raises(InvalidRequestError):
            records.key_for("not a uri")

    @pytest.mark.parametrize("key,expected", [
        ("status/ingest/a.wav.json", True),
        ("status/.json", False),
        ("status/ingest/a.wav.txt", False),
        ("other/ingest/a.wav.json", False),
    ])
    def test_is_record_key(self, records, key, expected):
        assert records.is_record_key(key) is expected


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


class TestReadWrite:
    def test_write_then_read(self, records):
        record = _record()
        key = records.key_for(record.request.file)
        records.write(key, record)
        assert records.exists(key)
        assert records.read(key) == record

    def test_stored_as_json_with_record_field_names(self, records, object_store):
        record = _record()
        key = records.key_for(record.request.file)
        records.write(key, record)
        data = json.loads(object_store.get("ingest", key))
        assert data["file"] == "gs://ingest/talks/review.wav"
        assert data["job_id"] == "op-1"
        assert data["status"] == "processing"

    def test_overwrite(self, records):
        record = _record()
        key = records.key_for(record.request.file)
        records.write(key, record)
        records.write(key, record.fail("boom"))
        assert records.read(key).status == JobStatus.ERROR

    def test_read_missing(self, records):
        with pytest.raises(RecordNotFoundError):
            records.read("status/ingest/missing.wav.json")

    @pytest.mark.parametrize("raw", [
        b"not json",
        b"[]",
        b'{"status": "processing"}',
        b'{"file": "gs://ingest/a.wav", "status": "bogus"}',
        b'{"file": "nonsense", "status": "processing"}',
    ])
    def test_read_malformed(self, records, object_store, raw):
        object_store.put("ingest", "status/ingest/a.wav.json", raw)
        with pytest.raises(MalformedRecordError):
            records.read("status/ingest/a.wav.json")

    def test_delete(self, records):
        record = _record()
        key = records.key_for(record.request.file)
        records.write(key, record)
        assert records.delete(key) is True
        assert not records.exists(key)
        assert records.delete(key) is True


class TestListPending:
    def test_lists_only_status_prefix(self, records, object_store):
        for uri in ("gs://ingest/b.wav", "gs://ingest/a/c.wav"):
            records.write(records.key_for(uri), _record(uri))
        object_store.put("ingest", "b.wav", b"audio")
        keys = sorted(records.list_pending())
        assert keys == ["status/ingest/a/c.wav.json", "status/ingest/b.wav.json"]

    def test_empty(self, records):
        assert list(records.list_pending()) == []


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------


class TestPurgeExpired:
    def _write(self, records, uri, record):
        key = records.key_for(uri)
        records.write(key, record)
        return key

    def test_removes_only_old_completed(self, records):
        old_done = self._write(records, "gs://ingest/old.wav", _record("gs://ingest/old.wav").complete({}, now=1000.0))
        new_done = self._write(records, "gs://ingest/new.wav", _record("gs://ingest/new.wav").complete({}, now=1950.0))
        old_err = self._write(records, "gs://ingest/err.wav", _record("gs://ingest/err.wav").fail("x", now=1000.0))
        running = self._write(records, "gs://ingest/run.wav", _record("gs://ingest/run.wav"))

        assert records.purge_expired(ttl_seconds=100, now=2000.0) == 1

        assert not records.exists(old_done)
        assert records.exists(new_done)
        assert records.exists(old_err)
        assert records.exists(running)

    def test_skips_unreadable(self, records, object_store):
        object_store.put("ingest", "status/ingest/bad.wav.json", b"{")
        assert records.purge_expired(ttl_seconds=0, now=10 ** 10) == 0
        assert object_store.exists("ingest", "status/ingest/bad.wav.json")
