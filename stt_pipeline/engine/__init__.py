"""Boundary to the long-running transcription engine.

WHY: Ingest and harvest talk to the engine only through two calls: start
a job, poll a job. This package holds the abstract boundary and the HTTP
implementation behind it.

HOW: base.py defines TranscriptionEngine, PollResult, EngineError and
EngineErrorKind. client.py implements them against the Speech-to-Text v1
REST API with httpx. models.py parses the REST responses.

RULES:
- All HTTP calls go through SpeechClient (no direct httpx usage elsewhere)
- Provider error codes are mapped to EngineErrorKind inside this package
"""

from stt_pipeline.engine.base import EngineError, EngineErrorKind, PollResult, TranscriptionEngine
from stt_pipeline.engine.client import SpeechClient

__all__ = ["EngineError", "EngineErrorKind", "PollResult", "SpeechClient", "TranscriptionEngine"]
