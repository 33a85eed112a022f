"""Engine configuration.

Settings are read from an optional YAML file and then overridden by
``HYPERREC_*`` environment variables, e.g. ``HYPERREC_REFRESH_EVENT_THRESHOLD=50``.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "HYPERREC_"


@dataclass
class EngineConfig:
    """Runtime configuration for the recommendation engine."""

    # Hybrid weights
    collaborative_weight: float = 0.4
    content_weight: float = 0.4
    trending_weight: float = 0.2

    # Request defaults
    default_limit: int = 10
    candidate_multiplier: int = 2
    exclude_recently_viewed: bool = True

    # Interaction store
    max_events_per_user: int = 100

    # Refresh policy
    refresh_event_threshold: int = 100
    refresh_interval_seconds: float = 3600.0
    background_refresh: bool = True
    scheduler_enabled: bool = False

    # Paths
    data_dir: str = "data"
    model_dir: str = "models"

    log_level: str = "INFO"

    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, config_path: str) -> "EngineConfig":
        """Load configuration from a YAML file.

        Unknown keys are kept in ``extra`` rather than rejected.
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}

        known = {f.name for f in fields(cls)}
        config = cls(**{k: v for k, v in raw.items() if k in known and k != "extra"})
        config.extra = {k: v for k, v in raw.items() if k not in known}

        logger.info(f"Loaded config from {config_path}")
        return config

    def apply_env_overrides(self, environ: Optional[Dict[str, str]] = None) -> "EngineConfig":
        """Override fields from ``HYPERREC_<FIELD>`` environment variables."""
        environ = os.environ if environ is None else environ

        for f in fields(self):
            if f.name == "extra":
                continue
            value = environ.get(ENV_PREFIX + f.name.upper())
            if value is None:
                continue
            current = getattr(self, f.name)
            if isinstance(current, bool):
                parsed: Any = value.strip().lower() in ("1", "true", "yes", "on")
            elif isinstance(current, int):
                parsed = int(value)
            elif isinstance(current, float):
                parsed = float(value)
            else:
                parsed = value
            setattr(self, f.name, parsed)

        return self

    @property
    def weights(self) -> Dict[str, float]:
        return {
            "collaborative": self.collaborative_weight,
            "content-based": self.content_weight,
            "trending": self.trending_weight,
        }


def load_config(config_path: Optional[str] = None) -> EngineConfig:
    """Build the engine configuration.

    Args:
        config_path: Optional YAML file. Falls back to ``HYPERREC_CONFIG``.

    Returns:
        EngineConfig with environment overrides applied.
    """
    config_path = config_path or os.environ.get(ENV_PREFIX + "CONFIG")

    if config_path:
        config = EngineConfig.from_yaml(config_path)
    else:
        config = EngineConfig()

    return config.apply_env_overrides()
