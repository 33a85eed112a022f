"""Process-scoped engine shared by the API routes.

The engine is built lazily on first use from the configured data
directory. When no generation can be built from the data, a generation
previously saved to the model directory is served instead.
"""

import logging
import threading
from typing import Optional

from hyperrec.config import EngineConfig, load_config
from hyperrec.recommender.engine import RecommendationEngine
from hyperrec.recommender.utils import check_generation_exists, load_data_dir, load_generation

# Configure module logger
logger = logging.getLogger(__name__)

# Cached engine instance
_engine: Optional[RecommendationEngine] = None
_engine_lock = threading.Lock()


def load_engine_if_needed(config: Optional[EngineConfig] = None) -> RecommendationEngine:
    """Build and start the engine if it is not already running.

    Args:
        config: Engine configuration; loaded from YAML/environment if omitted.

    Returns:
        The cached RecommendationEngine.
    """
    global _engine

    if _engine is not None:
        return _engine

    with _engine_lock:
        if _engine is not None:
            return _engine

        config = config or load_config()
        logger.info(
            "Starting recommendation engine",
            extra={"data_dir": config.data_dir, "model_dir": config.model_dir},
        )

        catalog, events = load_data_dir(config.data_dir)
        engine = RecommendationEngine(catalog, config=config)

        if not engine.start(events) and check_generation_exists(config.model_dir):
            logger.warning(f"Initial build failed, serving saved generation from {config.model_dir}")
            engine.handle.swap(load_generation(config.model_dir))

        _engine = engine
        return _engine


def get_engine() -> RecommendationEngine:
    """FastAPI dependency returning the shared engine."""
    return load_engine_if_needed()


def set_engine(engine: Optional[RecommendationEngine]) -> None:
    """Replace the shared engine, stopping the previous one."""
    global _engine

    with _engine_lock:
        previous = _engine
        _engine = engine

    if previous is not None and previous is not engine:
        previous.stop()
