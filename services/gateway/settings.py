"""
Gateway configuration, read from the environment.

Environment variables (all have sane defaults for local dev):
  PORT                  3000
  HOST                  0.0.0.0
  BASE_URL              https://humancodeai.com
  DEBUG                 false    ("true" traces every HumanCode request)
  APP_ID                (empty)
  APP_KEY               (empty)
  CALLBACK_URL          http://localhost:3000/verify
  PLACEHOLDER_HUMAN_ID  humanid...
  HTTP_TIMEOUT          10
  CORS_ORIGINS          *        (comma separated)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from humancode_client import ClientConfig


@dataclass(frozen=True)
class Settings:
    port:                 int = 3000
    host:                 str = "0.0.0.0"
    base_url:             str = "https://humancodeai.com"
    debug:                bool = False
    app_id:               str = ""
    app_key:              str = field(default="", repr=False)
    callback_url:         str = "http://localhost:3000/verify"
    placeholder_human_id: str = "humanid..."
    http_timeout:         float = 10.0
    cors_origins:         tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> "Settings":
        """Build settings from environ. Raises ValueError on a bad PORT or HTTP_TIMEOUT."""
        origins = tuple(
            o.strip() for o in environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
        )
        return cls(
            port                 = int(environ.get("PORT", "3000")),
            host                 = environ.get("HOST", "0.0.0.0"),
            base_url             = environ.get("BASE_URL", "https://humancodeai.com"),
            debug                = environ.get("DEBUG", "").lower() == "true",
            app_id               = environ.get("APP_ID", ""),
            app_key              = environ.get("APP_KEY", ""),
            callback_url         = environ.get("CALLBACK_URL", "http://localhost:3000/verify"),
            placeholder_human_id = environ.get("PLACEHOLDER_HUMAN_ID", "humanid..."),
            http_timeout         = float(environ.get("HTTP_TIMEOUT", "10")),
            cors_origins         = origins or ("*",),
        )

    def client_config(self) -> ClientConfig:
        return ClientConfig(
            base_url=self.base_url,
            app_id=self.app_id,
            app_key=self.app_key,
            debug=self.debug,
            timeout=self.http_timeout,
        )
