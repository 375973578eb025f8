"""Async HTTP client for the Speech-to-Text v1 long-running recognize API.

WHY: Ingest needs to start a long-running recognition for an audio object
and the harvester needs to poll its operation later, possibly from a
different process. This module hides the REST details and translates
provider error codes into EngineErrorKind once, so nothing else has to.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. SpeechClient is an
async context manager: enter it to open the connection pool, exit to
close it. submit_job() POSTs speech:longrunningrecognize and returns the
operation name; poll_job() GETs operations/{name} and returns a PollResult.

RULES:
- Always use the async context manager (async with SpeechClient(...) as engine:)
- Requests carry the API key as the "key" query parameter
- Word time offsets and automatic punctuation are always requested
- NOT_FOUND / HTTP 404 → EngineErrorKind.NOT_FOUND
- INVALID_ARGUMENT / HTTP 400 → EngineErrorKind.INVALID_ARGUMENT
- Anything else, including transport failures → EngineErrorKind.OTHER
- An operation that is done with an error raises EngineError from poll_job()
- A 200 response whose body is not a JSON object raises EngineError (OTHER)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from stt_pipeline.config import DEFAULT_SPEECH_BASE_URL, UNSPECIFIED_ENCODING, Settings, map_encoding
from stt_pipeline.engine.base import EngineError, EngineErrorKind, PollResult, TranscriptionEngine
from stt_pipeline.engine.models import ApiStatus, Operation

logger = logging.getLogger(__name__)

# google.rpc.Code values used in operation errors
_RPC_INVALID_ARGUMENT = 3
_RPC_NOT_FOUND = 5


def classify_status(status: Optional[ApiStatus], http_status: Optional[int] = None) -> EngineErrorKind:
    """Map a provider status to an EngineErrorKind.

    RULES:
    - The canonical status name wins when present
    - Otherwise the numeric rpc code, then the HTTP status, are consulted
    """
    if status is not None:
        if status.status == "NOT_FOUND":
            return EngineErrorKind.NOT_FOUND
        if status.status == "INVALID_ARGUMENT":
            return EngineErrorKind.INVALID_ARGUMENT
        if status.status is None:
            if status.code in (_RPC_NOT_FOUND, 404):
                return EngineErrorKind.NOT_FOUND
            if status.code in (_RPC_INVALID_ARGUMENT, 400):
                return EngineErrorKind.INVALID_ARGUMENT
    if http_status == 404:
        return EngineErrorKind.NOT_FOUND
    if http_status == 400:
        return EngineErrorKind.INVALID_ARGUMENT
    return EngineErrorKind.OTHER


def _error_from_response(resp: httpx.Response) -> EngineError:
    status = None
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        status = ApiStatus.from_dict(body["error"])
    message = status.message if status and status.message else resp.text
    return EngineError(classify_status(status, resp.status_code), message)


def _json_object(resp: httpx.Response) -> Dict[str, Any]:
    """Decode a successful response body, which must be a JSON object."""
    try:
        body = resp.json()
    except ValueError as exc:
        raise EngineError(EngineErrorKind.OTHER, "Unreadable engine response: {}".format(exc)) from exc
    if not isinstance(body, dict):
        raise EngineError(EngineErrorKind.OTHER, "Unexpected engine response: {!r}".format(body))
    return body


class SpeechClient(TranscriptionEngine):
    """Async client for long-running recognition jobs.

    RULES:
    - Use as: async with SpeechClient(api_key=...) as engine: ...
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        audio_channel_count: int = 2,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = (base_url or DEFAULT_SPEECH_BASE_URL).rstrip("/")
        self._audio_channel_count = audio_channel_count
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> SpeechClient:
        return cls(
            api_key=settings.speech_api_key,
            base_url=settings.speech_base_url,
            audio_channel_count=settings.audio_channel_count,
        )

    async def __aenter__(self) -> SpeechClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            params={"key": self._api_key} if self._api_key else None,
            timeout=httpx.Timeout(self._timeout, connect=10.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "SpeechClient must be used as an async context manager: "
                "async with SpeechClient(...) as engine: ..."
            )
        return self._client

    async def submit_job(
        self,
        audio_uri: str,
        encoding: str,
        sample_rate: int,
        language: str,
    ) -> str:
        """Start recognition of the audio object at audio_uri.

        Returns:
            The operation name, used as the job handle.

        Raises:
            EngineError: The request failed or was refused.
        """
        client = self._ensure_client()

        engine_encoding = map_encoding(encoding)
        if engine_encoding is None:
            logger.warning("Unknown encoding: %s", encoding)
            engine_encoding = UNSPECIFIED_ENCODING

        config: Dict[str, Any] = {
            "encoding": engine_encoding,
            "audioChannelCount": self._audio_channel_count,
            "languageCode": language,
            "enableAutomaticPunctuation": True,
            "enableWordTimeOffsets": True,
        }
        if sample_rate:
            config["sampleRateHertz"] = sample_rate

        body = {"config": config, "audio": {"uri": audio_uri}}

        try:
            resp = await client.post("/speech:longrunningrecognize", json=body)
        except httpx.HTTPError as exc:
            raise EngineError(EngineErrorKind.OTHER, "Request failed: {}".format(exc)) from exc

        if resp.status_code != 200:
            raise _error_from_response(resp)

        name = str(_json_object(resp).get("name", ""))
        if not name:
            raise EngineError(EngineErrorKind.OTHER, "Engine returned no operation name")
        return name

    async def poll_job(self, job_id: str) -> PollResult:
        """Fetch the operation state for job_id.

        Raises:
            EngineError: The request failed, or the operation finished
                with an error.
        """
        client = self._ensure_client()

        try:
            resp = await client.get("/operations/{}".format(job_id))
        except httpx.HTTPError as exc:
            raise EngineError(EngineErrorKind.OTHER, "Request failed: {}".format(exc)) from exc

        if resp.status_code != 200:
            raise _error_from_response(resp)

        try:
            operation = Operation.from_dict(_json_object(resp))
        except (AttributeError, TypeError, ValueError) as exc:
            raise EngineError(EngineErrorKind.OTHER, "Malformed operation: {}".format(exc)) from exc
        if not operation.done:
            return PollResult(done=False)
        if operation.error is not None:
            raise EngineError(classify_status(operation.error), operation.error.message)
        return PollResult(done=True, results=operation.results)
