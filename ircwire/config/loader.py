"""Configuration loading utilities."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from pydantic import ValidationError

from ..errors import UsageError
from ..logs.logger import logger
from .model import ClientSettings

DEFAULT_CONF_FILE = "ircwire.conf"


def default_config_path() -> str:
    return os.environ.get("IRCWIRE_CONF_FILE", DEFAULT_CONF_FILE)


def _extract_client_section(data: Any) -> dict[str, Any]:
    if isinstance(data, dict) and isinstance(data.get("client"), dict):
        return data["client"]
    if isinstance(data, dict):
        return data
    raise UsageError("configuration must be a JSON object")


def load_settings(path: str | os.PathLike[str] | None = None) -> ClientSettings:
    """Load and validate client settings from a JSON file.

    The file holds either the settings object itself or an object with a
    ``"client"`` key.

    Args:
        path: Path to the configuration file; defaults to ``$IRCWIRE_CONF_FILE``.

    Returns:
        Validated ClientSettings.

    Raises:
        UsageError: If the file is missing, not JSON, or fails validation.
    """
    config_path = str(path) if path is not None else default_config_path()
    try:
        with open(config_path, encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        logger.log_event("config", "missing", level=logging.ERROR, path=config_path)
        raise UsageError(f"configuration file not found: {config_path}") from e
    except json.JSONDecodeError as e:
        logger.log_event(
            "config", "invalid_json", level=logging.ERROR, path=config_path, error=str(e)
        )
        raise UsageError(f"configuration file is not valid JSON: {e}") from e

    try:
        settings = ClientSettings.from_dict(_extract_client_section(raw))
    except ValidationError as e:
        logger.log_event(
            "config",
            "invalid",
            level=logging.ERROR,
            path=config_path,
            errors=e.error_count(),
        )
        raise UsageError(
            f"invalid configuration in {config_path}", data={"errors": e.errors()}
        ) from e
    logger.log_event("config", "loaded", level=logging.DEBUG, path=config_path)
    return settings
