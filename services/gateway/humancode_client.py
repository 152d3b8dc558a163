"""
HumanCode REST API client.

Two signed calls (session creation and vcode verification) plus two pure URL
builders for the hosted authentication pages. Every signed call sends
app_id and sign as query parameters; sign is the HMAC-SHA256 of the exact
JSON body, keyed by the app key. The app key itself is never transmitted.

Methods raise TransportError, ProtocolError or ApiError (see errors.py).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

import requests

import signer
from envelope import GetSessionIdResult, VerifyResult, decode_response
from errors import TransportError

log = logging.getLogger(__name__)

SESSION_PATH = "/api/session/v2/get_id"
VERIFY_PATH  = "/api/vcode/v2/verify"


def _now_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ClientConfig:
    base_url: str
    app_id:   str
    app_key:  str = field(repr=False)
    debug:    bool = False
    timeout:  float = 10.0


class HumanCodeClient:
    def __init__(
        self,
        config: ClientConfig,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if config.debug:
            self._session.hooks["response"].append(_trace)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "HumanCodeClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ── Signed calls ──────────────────────────────────────────────────────────

    def _post_signed(self, path: str, payload: dict[str, str]) -> requests.Response:
        body = signer.canonical_json(payload)
        params = {
            "app_id": self.config.app_id,
            "sign": signer.sign(self.config.app_key, body),
        }
        url = f"{self.base_url}{path}"
        if self.config.debug:
            log.info("Request: POST %s %s %s", url, params, body.decode("utf-8"))
        try:
            return self._session.post(
                url,
                params=params,
                data=body,
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            log.error("HumanCode request to %s failed: %s", path, exc)
            raise TransportError(str(exc)) from exc

    def create_session(self, nonce: str) -> str:
        """Obtain a new session id for one verification attempt."""
        payload = {
            "timestamp": str(_now_millis()),
            "nonce_str": nonce,
        }
        resp = self._post_signed(SESSION_PATH, payload)
        result = decode_response(resp, GetSessionIdResult)
        log.info("Created HumanCode session %s", result.session_id)
        return result.session_id

    def verify_code(self, session_id: str, vcode: str, nonce: str) -> str:
        """Exchange a session's verification code for the human id."""
        payload = {
            "session_id": session_id,
            "vcode": vcode,
            "timestamp": str(_now_millis()),
            "nonce_str": nonce,
        }
        resp = self._post_signed(VERIFY_PATH, payload)
        return decode_response(resp, VerifyResult).human_id

    # ── URL builders ──────────────────────────────────────────────────────────

    # callback_url is inserted verbatim; the hosted page expects it unencoded.

    def build_registration_url(self, session_id: str, callback_url: str) -> str:
        return (
            f"{self.base_url}/authentication/index.html"
            f"?session_id={session_id}&callback_url={callback_url}&ts={_now_millis()}#/"
        )

    def build_verification_url(self, session_id: str, human_id: str, callback_url: str) -> str:
        return (
            f"{self.base_url}/api/authentication/index.html"
            f"?session_id={session_id}&human_id={human_id}"
            f"&callback_url={callback_url}&ts={_now_millis()}#/"
        )


def _trace(response: requests.Response, *args: object, **kwargs: object) -> None:
    """requests response hook: log the inbound body."""
    log.info("Response: %d %s", response.status_code, response.text)
