"""YAML configuration loader.

Layers a ``client:`` section on top of the env-derived ClientConfig. When no
YAML file is given or discovered, env vars work exactly as before.

Example YAML:
    client:
      base_url: https://texterm.example.com
      push_path: /ws
      request_timeout_seconds: 15
      progress_hide_delay_seconds: 0.5
      log_level: DEBUG
"""
from __future__ import annotations

import logging
from dataclasses import fields
from pathlib import Path

import yaml

from .config import ClientConfig

logger = logging.getLogger(__name__)

_FLOAT_FIELDS = {"request_timeout_seconds", "progress_hide_delay_seconds"}


def discover_config_path(cwd: Path | None = None) -> Path | None:
    """Return ``.texterm/texterm.yaml`` or ``texterm.yaml`` under *cwd*, if present."""
    base = cwd or Path.cwd()
    for candidate in (base / ".texterm" / "texterm.yaml", base / "texterm.yaml"):
        if candidate.exists():
            return candidate
    return None


def load_yaml_config(
    path: str | Path,
    base: ClientConfig | None = None,
) -> ClientConfig:
    """Load a YAML file and apply its ``client:`` section over *base*.

    Raises FileNotFoundError / yaml.YAMLError on unreadable files. Unknown
    keys and values of the wrong type are skipped with a warning.
    """
    path = Path(path)
    logger.info(
        "load_yaml_config: attempting to load config from %s (exists=%s)",
        path, path.exists(),
    )
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error("load_yaml_config: config file not found at %s", path.absolute())
        raise
    except yaml.YAMLError as exc:
        logger.error("load_yaml_config: YAML parse error in %s: %s", path, exc)
        raise

    config = base or ClientConfig.from_env()
    client_raw = raw.get("client") if isinstance(raw, dict) else None
    if not isinstance(client_raw, dict):
        logger.info("Parsed YAML config %s: no client section", path.name)
        return config

    known = {f.name for f in fields(ClientConfig)}
    for key, value in client_raw.items():
        if key not in known:
            logger.warning("load_yaml_config: unknown client key %r ignored", key)
            continue
        if value is None:
            logger.warning("load_yaml_config: client.%s is empty; ignored", key)
            continue
        if key in _FLOAT_FIELDS:
            try:
                value = float(value)
            except (TypeError, ValueError):
                logger.warning(
                    "load_yaml_config: client.%s=%r is not a number; ignored",
                    key, value,
                )
                continue
        else:
            value = str(value)
        setattr(config, key, value)

    config.validate()
    logger.info(
        "Parsed YAML config %s: client keys %s",
        path.name, ", ".join(sorted(client_raw)),
    )
    return config
