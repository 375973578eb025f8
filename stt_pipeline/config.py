"""Configuration constants, encoding mappings, and .env loading.

WHY: Centralizes every configurable value so it is easy to find, update,
and override. The shared secret, bucket names, and engine endpoint used to
be read ad hoc from the process environment wherever they were needed; now
they are gathered once into a Settings object that is passed explicitly to
each component at construction time.

HOW: Module-level constants hold values that never vary per deployment
(line budget, default frame rate, record key layout, encoding table).
Settings.from_env() loads the .env file via python-dotenv and reads the
deployment-specific values from os.environ.

RULES:
- DEFAULT_FPS is substituted whenever a frame rate is unset or outside
  MIN_FPS..MAX_FPS
- LINE_LENGTH (42) matches broadcast subtitle practice
- Record keys are STATUS_PREFIX + <bucket>/<object path> + RECORD_SUFFIX
- Secrets are loaded from the environment, never hardcoded
- An empty function_key rejects every keyed request
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Timing and layout
# ---------------------------------------------------------------------------

DEFAULT_FPS = 25
MIN_FPS = 1
MAX_FPS = 1000

LINE_LENGTH = 42
"""Target characters per line/cue, matching broadcast subtitle practice."""

# ---------------------------------------------------------------------------
# Record store layout
# ---------------------------------------------------------------------------

STATUS_PREFIX = "status/"
RECORD_SUFFIX = ".json"

# ---------------------------------------------------------------------------
# Engine encodings: request identifier → Speech-to-Text v1 enum name
# ---------------------------------------------------------------------------

ENCODING_MAP: dict[str, str] = {
    "PCM": "LINEAR16",
    "LINEAR16": "LINEAR16",
    "OPUS": "OGG_OPUS",
    "OGG_OPUS": "OGG_OPUS",
    "FLAC": "FLAC",
}

UNSPECIFIED_ENCODING = "ENCODING_UNSPECIFIED"

DEFAULT_SPEECH_BASE_URL = "https://speech.googleapis.com/v1"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError("{} must be an integer, got {!r}".format(name, raw))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Deployment configuration shared by the API, CLI, and job components.

    WHY: Components must not reach into the process environment on their
    own. One immutable object built at startup makes every dependency on
    configuration explicit and lets tests construct their own.

    RULES:
    - Frozen: never mutated after construction
    - storage_backend is "local" or "minio"
    - harvest_concurrency caps in-flight engine polls per harvest pass
    - harvest_timeout_s bounds one whole harvest pass
    - record_ttl_s is the retention period for completed records
    """

    function_key: str = ""
    ingest_bucket: str = "ingest"
    result_bucket: str = "results"
    storage_backend: str = "local"
    storage_root: str = "./data"
    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = ""
    minio_secret_key: str = ""
    minio_secure: bool = False
    speech_api_key: str = ""
    speech_base_url: str = DEFAULT_SPEECH_BASE_URL
    audio_channel_count: int = 2
    harvest_concurrency: int = 8
    harvest_timeout_s: float = 540.0
    record_ttl_s: int = 7 * 24 * 3600

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> Settings:
        """Build Settings from environment variables (and a .env file).

        RULES:
        - Variables already set in the environment win over .env values
        - Missing variables fall back to the dataclass defaults
        - Raises ValueError for malformed integers or an unknown backend
        """
        load_dotenv(dotenv_path)

        settings = cls(
            function_key=os.getenv("FUNCTION_KEY", "").strip(),
            ingest_bucket=os.getenv("INGEST_BUCKET", cls.ingest_bucket),
            result_bucket=os.getenv("RESULT_BUCKET", cls.result_bucket),
            storage_backend=os.getenv("STORAGE_BACKEND", cls.storage_backend).lower(),
            storage_root=os.getenv("STORAGE_ROOT", cls.storage_root),
            minio_endpoint=os.getenv("MINIO_ENDPOINT", cls.minio_endpoint),
            minio_access_key=os.getenv("MINIO_ACCESS_KEY", ""),
            minio_secret_key=os.getenv("MINIO_SECRET_KEY", ""),
            minio_secure=_env_bool("MINIO_SECURE", cls.minio_secure),
            speech_api_key=os.getenv("SPEECH_API_KEY", "").strip(),
            speech_base_url=os.getenv("SPEECH_BASE_URL", cls.speech_base_url),
            audio_channel_count=_env_int("SPEECH_AUDIO_CHANNELS", cls.audio_channel_count),
            harvest_concurrency=_env_int("HARVEST_CONCURRENCY", cls.harvest_concurrency),
            harvest_timeout_s=float(_env_int("HARVEST_TIMEOUT_S", int(cls.harvest_timeout_s))),
            record_ttl_s=_env_int("RECORD_TTL_S", cls.record_ttl_s),
        )

        if settings.storage_backend not in ("local", "minio"):
            raise ValueError(
                "STORAGE_BACKEND must be 'local' or 'minio', got {!r}".format(
                    settings.storage_backend
                )
            )
        return settings


def map_encoding(encoding: str) -> Optional[str]:
    """Map a request encoding identifier to the engine's enum name.

    Returns None for unknown identifiers; the caller decides how to report it.
    """
    return ENCODING_MAP.get((encoding or "").strip().upper())
