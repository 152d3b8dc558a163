"""
Mock HumanCode Service
Simulates the subset of the HumanCode API the gateway talks to.

Supported endpoints:
  POST   /api/session/v2/get_id?app_id=&sign=   issue a session id
  POST   /api/vcode/v2/verify?app_id=&sign=     exchange session + vcode for a human id
  GET    /mock/sessions/{session_id}            inspect a session (exposes its vcode)
  GET    /health

Signed endpoints check sign = hex HMAC-SHA256(MOCK_APP_KEY, raw body) and
reject nonces reused within MOCK_NONCE_TTL seconds (default 600); older
nonces are pruned on each call. Responses use HumanCode's envelope over
HTTP 200:
  { "code": <int>, "msg": <str>, "result": <object> }

Application codes:
  0 = ok  |  1 = bad sign  |  2 = unknown app  |  3 = nonce reused
  4 = malformed body  |  5 = unknown session  |  6 = invalid vcode
"""

from __future__ import annotations

import os
import secrets
import time
import uuid
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac
from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, ValidationError

MOCK_APP_ID  = os.getenv("MOCK_APP_ID",  "dev-app-id")
MOCK_APP_KEY = os.getenv("MOCK_APP_KEY", "dev-app-key")
NONCE_TTL_SECONDS = float(os.getenv("MOCK_NONCE_TTL", "600"))

OK              = 0
BAD_SIGN        = 1
UNKNOWN_APP     = 2
NONCE_REUSED    = 3
MALFORMED_BODY  = 4
UNKNOWN_SESSION = 5
INVALID_VCODE   = 6

app = FastAPI(title="Mock HumanCode", version="1.0.0")

# ── In-memory store ───────────────────────────────────────────────────────────
_sessions: dict[str, dict[str, Any]] = {}
_nonces: dict[str, float] = {}  # nonce -> monotonic time first seen
_lock = Lock()


def _now_str() -> str:
    return datetime.now(timezone.utc).isoformat()


def _envelope(code: int, msg: str, result: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"code": code, "msg": msg, "result": result or {}}


def reset() -> None:
    """Drop all sessions and seen nonces."""
    with _lock:
        _sessions.clear()
        _nonces.clear()


# ── Request models ────────────────────────────────────────────────────────────

class SessionRequest(BaseModel):
    timestamp: str
    nonce_str: str


class VerifyRequest(BaseModel):
    session_id: str
    vcode: str
    timestamp: str
    nonce_str: str


# ── Helpers ───────────────────────────────────────────────────────────────────

def _signature_ok(body: bytes, sign: str) -> bool:
    try:
        expected = bytes.fromhex(sign)
    except ValueError:
        return False
    h = hmac.HMAC(MOCK_APP_KEY.encode("utf-8"), hashes.SHA256())
    h.update(body)
    try:
        h.verify(expected)
    except InvalidSignature:
        return False
    return True


def _check_call(app_id: str, sign: str, body: bytes) -> dict[str, Any] | None:
    """Return an error envelope if the call is not properly signed, else None."""
    if app_id != MOCK_APP_ID:
        return _envelope(UNKNOWN_APP, f"unknown app_id {app_id!r}")
    if not _signature_ok(body, sign):
        return _envelope(BAD_SIGN, "bad sign")
    return None


def _gc_nonces(now: float) -> None:
    for k in [k for k, seen in _nonces.items() if now - seen > NONCE_TTL_SECONDS]:
        del _nonces[k]


def _claim_nonce(nonce: str) -> bool:
    """Record nonce; False if it was already used within NONCE_TTL_SECONDS."""
    now = time.monotonic()
    with _lock:
        _gc_nonces(now)
        if nonce in _nonces:
            return False
        _nonces[nonce] = now
    return True


# ── Routes ────────────────────────────────────────────────────────────────────

@app.post("/api/session/v2/get_id")
async def get_session_id(
    request: Request,
    app_id: str = Query(default=""),
    sign: str = Query(default=""),
) -> dict[str, Any]:
    body = await request.body()
    error = _check_call(app_id, sign, body)
    if error:
        return error
    try:
        req = SessionRequest.model_validate_json(body)
    except ValidationError as exc:
        return _envelope(MALFORMED_BODY, f"malformed body: {exc.error_count()} error(s)")
    if not _claim_nonce(req.nonce_str):
        return _envelope(NONCE_REUSED, "nonce reused")

    record = {
        "session_id": uuid.uuid4().hex,
        "vcode": f"{secrets.randbelow(1_000_000):06d}",
        "human_id": None,
        "created_at": _now_str(),
        "verified_at": None,
    }
    with _lock:
        _sessions[record["session_id"]] = record
    return _envelope(OK, "ok", {"session_id": record["session_id"]})


@app.post("/api/vcode/v2/verify")
async def verify_vcode(
    request: Request,
    app_id: str = Query(default=""),
    sign: str = Query(default=""),
) -> dict[str, Any]:
    body = await request.body()
    error = _check_call(app_id, sign, body)
    if error:
        return error
    try:
        req = VerifyRequest.model_validate_json(body)
    except ValidationError as exc:
        return _envelope(MALFORMED_BODY, f"malformed body: {exc.error_count()} error(s)")
    if not _claim_nonce(req.nonce_str):
        return _envelope(NONCE_REUSED, "nonce reused")

    with _lock:
        record = _sessions.get(req.session_id)
        if record is None:
            return _envelope(UNKNOWN_SESSION, "unknown session")
        if not secrets.compare_digest(record["vcode"], req.vcode):
            return _envelope(INVALID_VCODE, "invalid vcode")
        if record["human_id"] is None:
            record["human_id"] = str(uuid.uuid5(uuid.NAMESPACE_URL, f"humancode:{req.session_id}"))
            record["verified_at"] = _now_str()
        human_id = record["human_id"]
    return _envelope(OK, "ok", {"human_id": human_id})


@app.get("/mock/sessions/{session_id}")
def get_session(session_id: str) -> dict[str, Any]:
    with _lock:
        record = _sessions.get(session_id)
    if record is None:
        raise HTTPException(status_code=404, detail={"error": "No session found", "session_id": session_id})
    return {"result": dict(record)}


# ── Health ────────────────────────────────────────────────────────────────────

@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "service": "mock-humancode"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8080")))
