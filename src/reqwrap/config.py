"""Configuration loading and precedence resolution.

* **Environment detection** -- :func:`resolve_environment` picks the
  deployment environment from an explicit value or ``REQWRAP_ENV``.
* **Request logging** -- :func:`resolve_request_log` decides whether
  clients emit one log line per request.
* **Config files** -- :func:`load_client_config` reads a JSON file into a
  :class:`~reqwrap.models.ClientConfig`.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from reqwrap.constants import DEVELOPMENT_ENVIRONMENT, ENV_ENVIRONMENT, ENV_REQUEST_LOG
from reqwrap.exceptions import ConfigError
from reqwrap.models import ClientConfig

_TRUTHY = {"1", "true", "yes", "on"}


def resolve_environment(explicit: Optional[str] = None) -> Optional[str]:
    """Resolve the deployment environment name.

    Precedence (high to low):
        1. ``explicit`` (from :class:`~reqwrap.models.OptionalConfig`)
        2. ``REQWRAP_ENV`` environment variable
        3. ``None``
    """
    if explicit:
        return explicit
    return os.environ.get(ENV_ENVIRONMENT) or None


def resolve_request_log(
    environment: Optional[str] = None,
    explicit: Optional[bool] = None,
) -> bool:
    """Decide whether request log lines are emitted.

    Precedence (high to low):
        1. ``explicit`` flag, when not ``None``
        2. ``REQWRAP_REQUEST_LOG`` set to a truthy value
        3. ``True`` in the development environment, ``False`` otherwise
    """
    if explicit is not None:
        return explicit
    env_value = os.environ.get(ENV_REQUEST_LOG)
    if env_value:
        return env_value.strip().lower() in _TRUTHY
    return environment == DEVELOPMENT_ENVIRONMENT


def load_client_config(path: str | Path) -> ClientConfig:
    """Load and validate a client configuration from a JSON file.

    Both snake_case field names and their camelCase aliases (``baseURL``,
    ``cacheService``, ...) are accepted.

    Raises:
        ConfigError: If the file does not exist, contains invalid JSON, or
            fails Pydantic validation.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ClientConfig.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid client config at {path}: {exc}") from exc
