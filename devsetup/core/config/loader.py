"""
Configuration loader — reads devsetup.yml into a SetupConfig.

The YAML file supplies defaults; CLI flags override them. Everything
is validated by the ``SetupConfig`` Pydantic model, and any problem
surfaces as a ``configuration_error``.

Example devsetup.yml::

    skip_editors: [antigravity]
    blocklist: [cursor]
    max_retries: 2
    dry_run: false
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from devsetup.core.errors import classify, configuration_error
from devsetup.core.models.setup import DevTool, Editor, Policy, known_identifiers

logger = logging.getLogger(__name__)

CONFIG_FILE = "devsetup.yml"


class SetupConfig(BaseModel):
    """Options recognised by the setup pipeline."""

    skip_tools: list[DevTool] = Field(default_factory=list)
    skip_editors: list[Editor] = Field(default_factory=list)
    allowlist: list[str] | None = None
    blocklist: list[str] | None = None
    dry_run: bool = False
    max_retries: int = Field(default=1, ge=0)
    backoff_base_ms: int = Field(default=300, ge=0)
    verbose: bool = False

    @field_validator("allowlist", "blocklist")
    @classmethod
    def _known_identifiers(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        unknown = sorted(set(value) - known_identifiers())
        if unknown:
            raise ValueError(f"unknown identifiers: {', '.join(unknown)}")
        return value

    @model_validator(mode="after")
    def _allowlist_not_empty(self) -> SetupConfig:
        if self.allowlist is not None and not self.allowlist:
            raise ValueError("allowlist is empty; nothing would be installed")
        return self

    @property
    def policy(self) -> Policy:
        return Policy(
            allowlist=frozenset(self.allowlist) if self.allowlist is not None else None,
            blocklist=frozenset(self.blocklist) if self.blocklist is not None else None,
        )


def parse_csv(value: str | None) -> list[str] | None:
    """Split a comma-separated CLI value; None/empty → None."""
    if not value:
        return None
    items = [v.strip() for v in value.split(",") if v.strip()]
    return items or None


def build_config(data: dict[str, Any] | None = None, **overrides: Any) -> SetupConfig:
    """Validate a mapping plus overrides (None overrides are ignored).

    Raises:
        SetupError: configuration_error on invalid input.
    """
    merged = dict(data or {})
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return SetupConfig.model_validate(merged)
    except ValidationError as e:
        raise classify(e) from e


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for devsetup.yml starting from ``start_dir``, walking up."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file into a mapping.

    Raises:
        SetupError: configuration_error if the file is unreadable or
            not a mapping.
    """
    if not path.is_file():
        raise configuration_error("config", f"config file not found: {path}")

    logger.debug("Loading setup config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise configuration_error("config", f"cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise configuration_error("config", f"invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise configuration_error(
            "config", f"expected a YAML mapping in {path}, got {type(data).__name__}"
        )

    # Allow everything to be nested under a "setup" key
    if isinstance(data.get("setup"), dict):
        data = data["setup"]
    return data


def load_config(path: Path | None = None, **overrides: Any) -> SetupConfig:
    """Load config from ``path`` (or auto-detect) and apply overrides."""
    if path is None:
        path = find_config_file()
    data = load_config_file(path) if path is not None else {}
    config = build_config(data, **overrides)
    logger.info("Loaded setup config (dry_run=%s, max_retries=%d)", config.dry_run, config.max_retries)
    return config
