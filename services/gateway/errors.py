"""
Failure taxonomy for calls to the HumanCode API.

  TransportError  the service could not be reached
  ProtocolError   non-200 status, or a 200 body that is not a usable envelope
  ApiError        200 with a nonzero application code
"""

from __future__ import annotations


class HumanCodeError(Exception):
    """Base class for every failure talking to the HumanCode API."""


class TransportError(HumanCodeError):
    def __init__(self, cause: str) -> None:
        super().__init__(f"Request failed: {cause}")
        self.cause = cause


RemoteCallError = TransportError


class ProtocolError(HumanCodeError):
    def __init__(self, status_code: int, detail: str | None = None) -> None:
        super().__init__(detail or f"HTTP Error: {status_code}")
        self.status_code = status_code


class ApiError(HumanCodeError):
    def __init__(self, code: int, msg: str) -> None:
        super().__init__(f"API Error: [{code}] {msg}")
        self.code = code
        self.msg = msg
