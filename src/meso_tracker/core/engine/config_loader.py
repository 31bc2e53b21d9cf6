"""
YAML → typed model settings.

Loads tunable model constants from model.yaml (bundled with the package)
and optionally merges user overrides from ~/.meso-tracker/model.yaml.

Usage:
    from meso_tracker.core.engine.config_loader import load_model_settings
    settings = load_model_settings()
    tracker = MesoCycleTracker(
        fatigue=FatigueAccumulator(
            fatigue_per_set=settings.fatigue_per_set,
            decay_rate_per_day=settings.decay_rate_per_day,
        ),
        deload_factor=settings.deload_volume_factor,
    )

A missing or unparseable file contributes nothing; any key it does not set
falls back to the Python defaults in config.py.
"""

from __future__ import annotations

import logging
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..config import (
    DECAY_RATE_PER_DAY,
    DELOAD_VOLUME_FACTOR,
    FATIGUE_DELOAD_THRESHOLD,
    FATIGUE_PER_SET,
)

logger = logging.getLogger(__name__)

USER_CONFIG_DIRNAME = ".meso-tracker"


@dataclass(frozen=True)
class ModelSettings:
    fatigue_per_set: float = FATIGUE_PER_SET
    decay_rate_per_day: float = DECAY_RATE_PER_DAY
    deload_volume_factor: float = DELOAD_VOLUME_FACTOR
    deload_fatigue_threshold: float = FATIGUE_DELOAD_THRESHOLD


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; warn and return {} if it cannot be parsed."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"meso-tracker: ignoring {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def user_config_dir() -> Path:
    """~/.meso-tracker, honouring $HOME so tests can redirect it."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / USER_CONFIG_DIRNAME


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled model.yaml, or None if not found."""
    # config_loader.py lives at src/meso_tracker/core/engine/
    candidate = Path(__file__).parent.parent.parent / "model.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.meso-tracker/model.yaml if it exists, else None."""
    p = user_config_dir() / "model.yaml"
    return p if p.exists() else None


def load_model_config() -> dict[str, Any]:
    """
    Load and merge raw model configuration.

    Load order (later overrides earlier):
    1. Bundled src/meso_tracker/model.yaml
    2. User override at ~/.meso-tracker/model.yaml
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = deep_merge(config, load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = load_yaml_file(user)
        if user_cfg:
            logger.debug("merging user model config from %s", user)
            config = deep_merge(config, user_cfg)

    return config


def _positive(section: dict, key: str, default: float) -> float:
    value = section.get(key, default)
    try:
        value = float(value)
    except (TypeError, ValueError):
        warnings.warn(f"meso-tracker: {key}={value!r} is not a number; using {default}", stacklevel=3)
        return default
    if value <= 0:
        warnings.warn(f"meso-tracker: {key} must be positive; using {default}", stacklevel=3)
        return default
    return value


def load_model_settings() -> ModelSettings:
    """Build ModelSettings from the merged YAML config."""
    cfg = load_model_config()
    fatigue = cfg.get("fatigue", {}) or {}
    deload = cfg.get("deload", {}) or {}

    factor = _positive(deload, "VOLUME_FACTOR", DELOAD_VOLUME_FACTOR)
    if factor > 1:
        warnings.warn("meso-tracker: deload VOLUME_FACTOR above 1 ignored", stacklevel=2)
        factor = DELOAD_VOLUME_FACTOR

    return ModelSettings(
        fatigue_per_set=_positive(fatigue, "PER_SET", FATIGUE_PER_SET),
        decay_rate_per_day=_positive(fatigue, "DECAY_RATE_PER_DAY", DECAY_RATE_PER_DAY),
        deload_volume_factor=factor,
        deload_fatigue_threshold=_positive(deload, "FATIGUE_THRESHOLD", FATIGUE_DELOAD_THRESHOLD),
    )
