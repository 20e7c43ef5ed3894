"""Analysis configuration loaded from .daylens.toml and env vars.

Loading order: defaults → TOML file → env vars.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".daylens.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
    Path.home() / ".config" / "daylens",
]


class ClassificationConfig(BaseModel):
    """[classification] section — optional LLM-assisted event classification."""

    enabled: bool = False
    provider: Literal["local", "anthropic"] = "local"
    endpoint: str = "http://localhost:11434"
    model: str = ""
    batch_size: int = Field(default=8, ge=1)
    timeout: int = 60


class PatternConfig(BaseModel):
    """[patterns] section."""

    enabled: bool = False
    cooccurrence_window_minutes: int = Field(default=30, ge=0)
    min_cluster_size: int = Field(default=3, ge=1)
    track_recurrence: bool = True


class AnalysisConfig(BaseModel):
    """Top-level configuration for the analysis core."""

    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    patterns: PatternConfig = Field(default_factory=PatternConfig)


def load_config(path: str | Path | None = None) -> AnalysisConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .daylens.toml in CWD
    3. ~/.config/daylens/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged AnalysisConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        global_config = Path.home() / ".config" / "daylens" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    config = AnalysisConfig()
    if data:
        try:
            config = AnalysisConfig.model_validate(data)
        except ValueError as exc:
            logger.warning("Invalid config values, using defaults: %s", exc)

    return _apply_env_vars(config)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("true", "1", "yes")


def _apply_env_vars(config: AnalysisConfig) -> AnalysisConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "DAYLENS_LLM_ENDPOINT": ("classification", "endpoint"),
        "DAYLENS_LLM_MODEL": ("classification", "model"),
        "DAYLENS_LLM_PROVIDER": ("classification", "provider"),
    }
    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    for env_var, section in (
        ("DAYLENS_CLASSIFY_ENABLED", "classification"),
        ("DAYLENS_PATTERNS_ENABLED", "patterns"),
    ):
        raw = os.environ.get(env_var)
        if raw is not None:
            data[section]["enabled"] = _parse_bool(raw)

    batch_raw = os.environ.get("DAYLENS_LLM_BATCH_SIZE")
    if batch_raw is not None:
        data["classification"]["batch_size"] = int(batch_raw)

    return AnalysisConfig.model_validate(data)
