# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Server-option resolution for the Corrently connector.

Each setting is taken from the first place that defines it: the server
options of the foreign server, then ``CORRENTLY_*`` environment variables,
then ``defaults/corrently.yml``, then the built-in default.  The API key has
no default.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from . import __version__
from .errors import ConfigError

log = logging.getLogger(__name__)

DEFAULT_PATH = Path(__file__).resolve().parent / "defaults" / "corrently.yml"

DEFAULT_API_URL = "https://api.corrently.io"
DEFAULT_ENDPOINT = "/v2.0/gsi/prediction"
DEFAULT_USER_AGENT = f"corrently-fdw/{__version__}"

API_KEY_OPTION = "api_key"
API_URL_OPTION = "api_url"
TIMEOUT_OPTION = "timeout_s"

ENV_API_KEY = "CORRENTLY_API_KEY"
ENV_API_URL = "CORRENTLY_API_URL"
ENV_TIMEOUT = "CORRENTLY_TIMEOUT_S"
ENV_USER_AGENT = "CORRENTLY_USER_AGENT"


@dataclass(frozen=True)
class ServerOptions:
    """Resolved connection settings for one connector instance."""

    api_key: str = field(repr=False)
    api_url: str = DEFAULT_API_URL
    endpoint: str = DEFAULT_ENDPOINT
    user_agent: str = DEFAULT_USER_AGENT
    timeout_s: Optional[float] = None

    @property
    def prediction_url(self) -> str:
        return self.api_url.rstrip("/") + "/" + self.endpoint.lstrip("/")

    def headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }


def load_defaults(path: Path | None = None) -> Dict[str, Any]:
    """Return the YAML defaults, or an empty mapping when the file is absent."""

    target = Path(path) if path is not None else DEFAULT_PATH
    try:
        with target.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
    except FileNotFoundError:
        return {}
    if not isinstance(loaded, Mapping):
        raise ConfigError(f"Config file {target} must contain a mapping")
    return dict(loaded)


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _first(*values: Any) -> Optional[str]:
    for value in values:
        cleaned = _clean(value)
        if cleaned is not None:
            return cleaned
    return None


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None or raw.lower() in {"none", "null", "0"}:
        return None
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigError(f"Option '{TIMEOUT_OPTION}' must be a number of seconds, got {raw!r}") from exc
    if timeout <= 0:
        raise ConfigError(f"Option '{TIMEOUT_OPTION}' must be positive, got {raw!r}")
    return timeout


def resolve(options: Mapping[str, Any] | None = None, *, path: Path | None = None) -> ServerOptions:
    """Resolve server options, raising :class:`ConfigError` without an API key."""

    options = options or {}
    defaults = load_defaults(path)

    api_key = _first(options.get(API_KEY_OPTION), os.getenv(ENV_API_KEY))
    if api_key is None:
        raise ConfigError(
            f"Missing required server option '{API_KEY_OPTION}' "
            f"(CREATE SERVER ... OPTIONS ({API_KEY_OPTION} '<token>') or set {ENV_API_KEY})"
        )

    api_url = _first(options.get(API_URL_OPTION), os.getenv(ENV_API_URL), defaults.get("api_url"))
    endpoint = _first(defaults.get("endpoint"))
    user_agent = _first(os.getenv(ENV_USER_AGENT), defaults.get("user_agent"))
    timeout = _parse_timeout(
        _first(options.get(TIMEOUT_OPTION), os.getenv(ENV_TIMEOUT), defaults.get("timeout_s"))
    )

    resolved = ServerOptions(
        api_key=api_key,
        api_url=api_url or DEFAULT_API_URL,
        endpoint=endpoint or DEFAULT_ENDPOINT,
        user_agent=user_agent or DEFAULT_USER_AGENT,
        timeout_s=timeout,
    )
    log.debug(
        "config.resolved | api_url=%s endpoint=%s timeout_s=%s",
        resolved.api_url,
        resolved.endpoint,
        resolved.timeout_s,
    )
    return resolved


__all__ = ["DEFAULT_API_URL", "DEFAULT_PATH", "ServerOptions", "load_defaults", "resolve"]
