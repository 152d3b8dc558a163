"""
HMAC-SHA256 request signing for the HumanCode API.

The remote service recomputes the signature over the raw request body, so
the bytes returned by canonical_json() are both what gets signed and what
gets sent.

Canonical JSON: sort_keys=True, no extra whitespace, UTF-8 encoded.
Signature encoding: lowercase hex.
"""

from __future__ import annotations

import json

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac


def canonical_json(payload: dict[str, str]) -> bytes:
    """Return canonical UTF-8 JSON bytes (sorted keys, no extra whitespace)."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def _hmac(secret: str) -> hmac.HMAC:
    return hmac.HMAC(secret.encode("utf-8"), hashes.SHA256())


def sign(secret: str, payload: bytes) -> str:
    """Return the hex HMAC-SHA256 of payload keyed by secret."""
    h = _hmac(secret)
    h.update(payload)
    return h.finalize().hex()


def verify(secret: str, payload: bytes, signature: str) -> bool:
    """Return True if signature is the hex HMAC-SHA256 of payload."""
    try:
        expected = bytes.fromhex(signature)
    except ValueError:
        return False
    h = _hmac(secret)
    h.update(payload)
    try:
        h.verify(expected)
    except InvalidSignature:
        return False
    return True
