"""
Run configuration for the endnote migration.

Options are layered, lowest precedence first: built-in defaults, environment
variables (consulted only for keys the config file leaves out), an optional
JSON config file, then explicit overrides (the CLI arguments).  The JSON file
mirrors the option names under two sections::

    {
      "ghost": {"api_url": "https://example.com", "admin_api_key": "id:secret"},
      "migration": {"content": "…", "delay_between_calls": 50}
    }

The merged options are validated into an immutable :class:`RunConfig` when
the pipeline initialises.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ghost_endnote.utils.errors import ConfigurationError

CONFIG_FILE = "config/endnote_config.json"

DEFAULT_CONTENT = "Test endnote content"
DEFAULT_DELAY_MS = 50
DEFAULT_LOOPBACK_ALIASES = {"localhost": "127.0.0.1"}


class RunConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    api_url: str = Field(..., min_length=1)
    admin_api_key: str = Field(..., min_length=1)
    post_ids: List[str] = Field(..., min_length=1)
    content: str = DEFAULT_CONTENT
    delay_between_calls: int = Field(DEFAULT_DELAY_MS, ge=0)
    concurrency: Literal[1] = 1
    verbose: bool = False
    api_version: str = "v5.0"
    loopback_aliases: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_LOOPBACK_ALIASES))
    reports_dir: str = os.path.join("reports", "migration")

    @field_validator("api_url", "admin_api_key", mode="before")
    @classmethod
    def _strip(cls, v: Any):
        return v.strip() if isinstance(v, str) else v

    @field_validator("post_ids", mode="before")
    @classmethod
    def _split_ids(cls, v: Any):
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            return [str(item).strip() for item in v if item is not None and str(item).strip()]
        return v

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> "RunConfig":
        """Validate ``options``, turning any failure into :class:`ConfigurationError`."""
        try:
            return cls.model_validate(options)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'options'}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid run configuration: {problems}") from e

    @property
    def endpoint(self) -> str:
        return normalize_endpoint(self.api_url, self.loopback_aliases)


def normalize_endpoint(api_url: str, aliases: Optional[Dict[str, str]] = None) -> str:
    """
    Strip the trailing slash and rewrite the hostname when it exactly matches
    one of ``aliases`` (``localhost`` -> ``127.0.0.1`` by default).
    """
    url = api_url.strip().rstrip("/")
    parts = urlsplit(url)
    host = parts.hostname
    if not host or not aliases or host not in aliases:
        return url
    netloc = aliases[host]
    if parts.port is not None:
        netloc = f"{netloc}:{parts.port}"
    if parts.username or parts.password:
        creds = parts.username or ""
        if parts.password:
            creds = f"{creds}:{parts.password}"
        netloc = f"{creds}@{netloc}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def load_options(
    config_file: Optional[str] = CONFIG_FILE,
    overrides: Optional[Dict[str, Any]] = None,
    *,
    environ: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Merge the config file, the environment and ``overrides`` into one flat
    options dictionary.  ``None`` values in ``overrides`` do not mask lower
    layers.
    """
    env = os.environ if environ is None else environ
    config: Dict[str, Any] = {}
    if config_file and os.path.exists(config_file):
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Could not read config file {config_file}: {e}") from e
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {config_file} must hold a JSON object")
        for section in ("ghost", "migration"):
            if section in config and not isinstance(config[section], dict):
                raise ConfigurationError(f"Section '{section}' of {config_file} must be a JSON object")

    # Ensure essential keys exist to prevent KeyErrors
    config.setdefault("ghost", {})
    config["ghost"].setdefault("api_url", env.get("GHOST_API_URL", ""))
    config["ghost"].setdefault("admin_api_key", env.get("GHOST_ADMIN_API_KEY", ""))

    config.setdefault("migration", {})
    config["migration"].setdefault("content", DEFAULT_CONTENT)
    config["migration"].setdefault("delay_between_calls", DEFAULT_DELAY_MS)
    config["migration"].setdefault("post_ids", [])

    options: Dict[str, Any] = {**config["migration"], **config["ghost"]}
    for key, value in (overrides or {}).items():
        if value is not None:
            options[key] = value
    return options
