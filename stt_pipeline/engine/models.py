"""Speech-to-Text v1 REST response dataclasses.

WHY: The long-running operation endpoints return nested JSON with a
"done" flag, an optional "error" status, and results whose word offsets
are duration strings ("1.500s"). Typed dataclasses make that structure
explicit and keep parsing in one place.

HOW: Each dataclass maps to one JSON object and has a from_dict() factory.
parse_duration() accepts both the "1.5s" string form and the
{"seconds", "nanos"} object form.

RULES:
- Operation.done defaults to False when the field is absent
- Operation.results is only populated when done and no error is present
- ApiStatus.status is the canonical code name ("NOT_FOUND", ...)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def parse_duration(value: Any) -> float:
    """Convert a protobuf Duration in JSON form to float seconds.

    RULES:
    - "1.500s" → 1.5, "2s" → 2.0
    - {"seconds": "1", "nanos": 500000000} → 1.5
    - None or "" → 0.0
    - Raises ValueError for anything else, including NaN and infinity
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("s"):
            text = text[:-1]
        seconds = float(text)
    elif isinstance(value, dict):
        seconds = float(value.get("seconds", 0) or 0) + float(value.get("nanos", 0) or 0) / 1e9
    else:
        raise ValueError("Unsupported duration value: {!r}".format(value))
    if not math.isfinite(seconds):
        raise ValueError("Duration is not finite: {!r}".format(value))
    return seconds


@dataclass
class ApiStatus:
    """google.rpc.Status as returned in error bodies and failed operations."""

    code: int
    message: str
    status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ApiStatus:
        return cls(
            code=int(data.get("code", 0) or 0),
            message=str(data.get("message", "")),
            status=data.get("status"),
        )


@dataclass
class Operation:
    """A long-running recognize operation.

    RULES:
    - name is the job handle stored in the job record
    - error is set when the operation finished unsuccessfully
    """

    name: str
    done: bool = False
    error: Optional[ApiStatus] = None
    results: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Operation:
        error = data.get("error")
        response = data.get("response") or {}
        return cls(
            name=str(data.get("name", "")),
            done=bool(data.get("done", False)),
            error=ApiStatus.from_dict(error) if error else None,
            results=list(response.get("results") or []),
        )
