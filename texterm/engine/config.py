"""Configuration loaded from environment variables.

All settings have sensible defaults. Override via TEXTERM_* env vars, or a
``client:`` section in a YAML file (see ``yaml_config``).
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default


@dataclass
class ClientConfig:
    """Sync engine and push channel configuration."""

    # Backend serving /api/projects and the push channel
    base_url: str = "http://localhost:3001"
    push_path: str = "/ws"
    # Forwarded as a bearer token when set
    auth_token: str | None = None

    request_timeout_seconds: float = 30.0
    # Delay before a completed loading_progress snapshot is hidden
    progress_hide_delay_seconds: float = 0.5

    # Logging
    log_level: str = "INFO"

    def validate(self) -> None:
        """Reset out-of-range values to defaults."""
        self.base_url = (self.base_url or ClientConfig.base_url).rstrip("/")
        if not self.push_path.startswith("/"):
            self.push_path = "/" + self.push_path
        if self.request_timeout_seconds <= 0:
            logger.warning(
                "request_timeout_seconds=%s must be positive; using default",
                self.request_timeout_seconds,
            )
            self.request_timeout_seconds = ClientConfig.request_timeout_seconds
        if self.progress_hide_delay_seconds < 0:
            logger.warning(
                "progress_hide_delay_seconds=%s must not be negative; using default",
                self.progress_hide_delay_seconds,
            )
            self.progress_hide_delay_seconds = ClientConfig.progress_hide_delay_seconds
        self.log_level = (self.log_level or "INFO").upper()

    @property
    def push_url(self) -> str:
        """WebSocket URL derived from ``base_url``."""
        if self.base_url.startswith("https://"):
            return "wss://" + self.base_url[len("https://"):] + self.push_path
        if self.base_url.startswith("http://"):
            return "ws://" + self.base_url[len("http://"):] + self.push_path
        return self.base_url + self.push_path

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Load configuration from TEXTERM_* environment variables."""
        texterm_vars = sorted(
            k for k in os.environ if k.startswith("TEXTERM_")
        )
        if texterm_vars:
            # Values omitted: TEXTERM_AUTH_TOKEN is a secret
            logger.info(
                "ClientConfig.from_env: TEXTERM_* env overrides: %s",
                ", ".join(texterm_vars),
            )
        else:
            logger.debug("ClientConfig.from_env: no TEXTERM_* env vars set, using defaults")

        config = cls(
            base_url=os.getenv("TEXTERM_BASE_URL", cls.base_url),
            push_path=os.getenv("TEXTERM_PUSH_PATH", cls.push_path),
            auth_token=os.getenv("TEXTERM_AUTH_TOKEN") or None,
            request_timeout_seconds=_env_float(
                "TEXTERM_REQUEST_TIMEOUT", cls.request_timeout_seconds
            ),
            progress_hide_delay_seconds=_env_float(
                "TEXTERM_PROGRESS_HIDE_DELAY", cls.progress_hide_delay_seconds
            ),
            log_level=os.getenv("TEXTERM_LOG_LEVEL", cls.log_level),
        )
        config.validate()
        logger.info(
            "ClientConfig.from_env: base_url=%s push_path=%s timeout=%.1fs",
            config.base_url, config.push_path, config.request_timeout_seconds,
        )
        return config
