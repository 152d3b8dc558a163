"""
HumanCode response envelope.

Every HumanCode API call answers with the same wrapper:

  { "code": <int>, "msg": <str>, "result": <object> }

code == 0 means success; anything else is an application-level failure and
the result is discarded. decode_response() turns an HTTP response into the
typed result or raises one of the errors in errors.py.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, TypeVar

import requests

from errors import ApiError, ProtocolError

log = logging.getLogger(__name__)


def _field(data: dict, name: str, kind: type) -> Any:
    """Return data[name]; TypeError unless it is exactly a kind (so no bools for int)."""
    value = data[name]
    if type(value) is not kind:
        raise TypeError(f"{name} must be {kind.__name__}, got {type(value).__name__}")
    return value


# ── Data classes ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ResponseEnvelope:
    code:   int
    msg:    str
    result: Any

    @classmethod
    def from_dict(cls, data: dict) -> "ResponseEnvelope":
        return cls(
            code   = _field(data, "code", int),
            msg    = str(data.get("msg") or ""),
            result = data.get("result"),
        )


@dataclass(frozen=True)
class GetSessionIdResult:
    session_id: str

    @classmethod
    def from_dict(cls, data: dict) -> "GetSessionIdResult":
        return cls(session_id=_field(data, "session_id", str))


@dataclass(frozen=True)
class VerifyResult:
    human_id: str

    @classmethod
    def from_dict(cls, data: dict) -> "VerifyResult":
        return cls(human_id=_field(data, "human_id", str))


T = TypeVar("T", GetSessionIdResult, VerifyResult)


# ── Decoder ───────────────────────────────────────────────────────────────────

def decode_response(response: requests.Response, result_type: type[T]) -> T:
    """
    Unwrap a HumanCode envelope.

    Raises:
        ProtocolError: status is not 200, or the body is not an envelope
                       carrying the field result_type expects.
        ApiError:      the envelope code is nonzero.
    """
    status = response.status_code
    if status != 200:
        raise ProtocolError(status)

    try:
        body = response.json()
        envelope = ResponseEnvelope.from_dict(body)
    except (ValueError, KeyError, TypeError) as exc:
        raise ProtocolError(status, f"Malformed response envelope: {exc}") from exc

    if envelope.code != 0:
        log.warning("HumanCode API returned code=%d msg=%r", envelope.code, envelope.msg)
        raise ApiError(envelope.code, envelope.msg)

    try:
        return result_type.from_dict(envelope.result)
    except (KeyError, TypeError) as exc:
        raise ProtocolError(status, f"Bad result field: {exc}") from exc
