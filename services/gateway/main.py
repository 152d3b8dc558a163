"""
HumanCode Gateway
=================
Thin HTTP front for the HumanCode identity-verification flow.

Supported endpoints:
  GET  /                   liveness check (empty 200)
  GET  /session_id         obtain a fresh HumanCode session id
  GET  /registration_url   session + hosted registration page URL
  GET  /verification_url   session + hosted verification page URL
  GET  /verify             exchange session_id + vcode for a human id

One HumanCodeClient is built at startup and handed to the handlers through
the get_client dependency. Any HumanCode failure becomes an opaque 502.

Configuration is read from the environment; see settings.py.
"""

from __future__ import annotations

import logging
import math
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from errors import HumanCodeError
from humancode_client import HumanCodeClient
from settings import Settings

log = logging.getLogger("humancode.gateway")


# ── Response models ───────────────────────────────────────────────────────────

class SessionIdResponse(BaseModel):
    sessionId: str


class RegistrationUrlResponse(BaseModel):
    registrationUrl: str


class VerifyResponse(BaseModel):
    human_id: str


# ── Dependencies ──────────────────────────────────────────────────────────────

def get_client(request: Request) -> HumanCodeClient:
    return request.app.state.humancode


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _new_nonce() -> str:
    return str(uuid.uuid4())


_RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}


def is_error_code(raw: str | None) -> bool:
    """
    True unless raw reads as the number zero.

    Parsing follows JavaScript Number(): 0x/0o/0b literals are accepted,
    digit separators are not. A missing or non-numeric value counts as an
    error; blank counts as zero.
    """
    if raw is None:
        return True
    text = raw.strip()
    if not text:
        return False
    if "_" in text:
        return True
    prefix = text[:2].lower()
    try:
        if prefix in _RADIX_PREFIXES:
            digits = text[2:]
            if not digits.isascii() or not digits.isalnum():
                return True
            return int(digits, _RADIX_PREFIXES[prefix]) != 0
        value = float(text)
    except ValueError:
        return True
    return math.isnan(value) or value != 0


# ── Routes ────────────────────────────────────────────────────────────────────

def _register_routes(app: FastAPI) -> None:

    @app.get("/")
    def index() -> Response:
        return Response(status_code=200)

    @app.get("/session_id", response_model=SessionIdResponse)
    def session_id(client: HumanCodeClient = Depends(get_client)) -> SessionIdResponse:
        return SessionIdResponse(sessionId=client.create_session(_new_nonce()))

    @app.get("/registration_url", response_model=RegistrationUrlResponse)
    def registration_url(
        client: HumanCodeClient = Depends(get_client),
        settings: Settings = Depends(get_settings),
    ) -> RegistrationUrlResponse:
        sid = client.create_session(_new_nonce())
        return RegistrationUrlResponse(
            registrationUrl=client.build_registration_url(sid, settings.callback_url),
        )

    # Response field is registrationUrl here too; existing clients read that key.
    @app.get("/verification_url", response_model=RegistrationUrlResponse)
    def verification_url(
        client: HumanCodeClient = Depends(get_client),
        settings: Settings = Depends(get_settings),
    ) -> RegistrationUrlResponse:
        sid = client.create_session(_new_nonce())
        url = client.build_verification_url(
            sid, settings.placeholder_human_id, settings.callback_url,
        )
        return RegistrationUrlResponse(registrationUrl=url)

    @app.get("/verify", response_model=VerifyResponse)
    def verify(
        response: Response,
        session_id: str = Query(...),
        vcode: str = Query(...),
        error_code: str | None = Query(default=None),
        client: HumanCodeClient = Depends(get_client),
    ) -> VerifyResponse:
        if is_error_code(error_code):
            log.warning("verify called with error_code=%r for session %s", error_code, session_id)
            response.status_code = 400
        # The remote check still runs when error_code is set.
        human_id = client.verify_code(session_id, vcode, _new_nonce())
        return VerifyResponse(human_id=human_id)


# ── Middleware / error handlers ───────────────────────────────────────────────

def _register_middleware(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        allow_credentials=False,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        resp = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        log.info(
            "%s %s → %d (%.1f ms)",
            request.method, request.url.path, resp.status_code, elapsed_ms,
        )
        return resp

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        resp = await call_next(request)
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        return resp

    @app.exception_handler(HumanCodeError)
    async def humancode_error(request: Request, exc: HumanCodeError) -> JSONResponse:
        log.error(
            "%s %s failed: %s: %s",
            request.method, request.url.path, type(exc).__name__, exc,
        )
        return JSONResponse(
            status_code=502,
            content={"detail": "Verification service request failed"},
        )


# ── App factory ───────────────────────────────────────────────────────────────

def create_app(
    settings: Settings | None = None,
    client: HumanCodeClient | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    owns_client = client is None
    if client is None:
        client = HumanCodeClient(settings.client_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if owns_client:
            log.info("Closing HumanCode client")
            app.state.humancode.close()

    app = FastAPI(title="HumanCode Gateway", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.humancode = client

    _register_middleware(app, settings)
    _register_routes(app)
    return app


# ── Entry point ────────────────────────────────────────────────────────────────

def main() -> None:
    load_dotenv()
    settings = Settings.from_env()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    if not settings.app_id or not settings.app_key:
        log.warning("APP_ID or APP_KEY is empty; HumanCode will reject signed calls")
    log.info("HumanCode gateway starting on %s:%d (base_url=%s)",
             settings.host, settings.port, settings.base_url)

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
