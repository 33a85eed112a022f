"""Utility functions for the recommendation system.

This module provides helper functions for loading catalog and interaction
data and for persisting model generations to disk.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import joblib
import pandas as pd

from hyperrec.recommender.catalog import InMemoryCatalog
from hyperrec.recommender.generation import ModelGeneration
from hyperrec.recommender.records import InteractionEvent, InteractionKind

# Configure module logger
logger = logging.getLogger(__name__)

# Data filenames
PRODUCTS_FILENAME = "products.json"
USERS_FILENAME = "users.json"
EVENTS_FILENAME = "events.csv"

# Model artifact filenames
GENERATION_FILENAME = "generation.joblib"
GENERATION_METADATA_FILENAME = "generation_metadata.joblib"

EVENT_COLUMNS = ("user_id", "product_id", "kind", "timestamp")


def load_events_csv(csv_path: str) -> List[InteractionEvent]:
    """Load interaction events from a CSV file.

    The CSV must have ``user_id``, ``product_id``, ``kind`` and
    ``timestamp`` columns; ``duration`` and ``source`` are optional.

    Args:
        csv_path: Path to the CSV file.

    Returns:
        Events sorted by timestamp, oldest first.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ValueError: If required columns are missing or a kind is unknown.

    Example:
        >>> events = load_events_csv("data/events.csv")
        >>> print(f"Loaded {len(events)} events")
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    logger.info(f"Loading events from {csv_path}")
    df = pd.read_csv(csv_path, dtype={"user_id": str, "product_id": str})

    missing = set(EVENT_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"CSV missing required columns: {missing}")

    if df.empty:
        logger.warning(f"No events in {csv_path}")
        return []

    valid_kinds = {k.value for k in InteractionKind}
    unknown_kinds = set(df["kind"].unique()) - valid_kinds
    if unknown_kinds:
        raise ValueError(f"CSV contains unknown interaction kinds: {unknown_kinds}")

    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    df = df.sort_values("timestamp").reset_index(drop=True)

    has_duration = "duration" in df.columns
    has_source = "source" in df.columns

    events = []
    for row in df.itertuples(index=False):
        duration = getattr(row, "duration") if has_duration else None
        source = getattr(row, "source") if has_source else None
        events.append(
            InteractionEvent(
                user_id=row.user_id,
                product_id=row.product_id,
                kind=InteractionKind(row.kind),
                timestamp=row.timestamp.to_pydatetime(),
                duration=None if duration is None or pd.isna(duration) else float(duration),
                source=None if source is None or pd.isna(source) else str(source),
            )
        )

    logger.info(
        f"Loaded {len(events)} events: "
        f"{df['user_id'].nunique()} users, {df['product_id'].nunique()} products"
    )

    return events


def load_catalog(data_dir: str) -> InMemoryCatalog:
    """Load users and products from JSON record files.

    Missing files yield an empty side of the catalog rather than an error.

    Args:
        data_dir: Directory containing ``users.json`` and ``products.json``.

    Returns:
        InMemoryCatalog with the loaded records.
    """
    data_path = Path(data_dir)
    products_file = data_path / PRODUCTS_FILENAME
    users_file = data_path / USERS_FILENAME

    products = []
    if products_file.exists():
        with open(products_file, "r") as f:
            products = json.load(f)
    else:
        logger.warning(f"Products file not found: {products_file}")

    users = []
    if users_file.exists():
        with open(users_file, "r") as f:
            users = json.load(f)
    else:
        logger.warning(f"Users file not found: {users_file}")

    catalog = InMemoryCatalog.from_records(users=users, products=products)
    logger.info(f"Loaded catalog from {data_dir}: {len(users)} users, {len(products)} products")
    return catalog


def load_data_dir(data_dir: str) -> Tuple[InMemoryCatalog, List[InteractionEvent]]:
    """Load the catalog and, if present, the event log from ``data_dir``."""
    catalog = load_catalog(data_dir)
    events_file = Path(data_dir) / EVENTS_FILENAME
    events = load_events_csv(str(events_file)) if events_file.exists() else []
    return catalog, events


def save_generation(generation: ModelGeneration, output_dir: str) -> None:
    """Save a model generation to disk.

    Args:
        generation: Generation to save.
        output_dir: Directory path where artifacts will be saved.

    Raises:
        OSError: If unable to create output directory or save files.
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    logger.info(f"Saving model generation to {output_dir}")

    generation_path = output_path / GENERATION_FILENAME
    joblib.dump(generation, generation_path)

    metadata_path = output_path / GENERATION_METADATA_FILENAME
    joblib.dump(generation.summary(), metadata_path)

    logger.info(f"Saved generation {generation.model_version} to {generation_path}")


def load_generation(model_dir: str) -> ModelGeneration:
    """Load a model generation from disk.

    Args:
        model_dir: Directory path where artifacts are stored.

    Returns:
        The stored ModelGeneration.

    Raises:
        FileNotFoundError: If the directory or artifact is missing.
    """
    model_path = Path(model_dir)

    if not model_path.exists():
        raise FileNotFoundError(f"Model directory does not exist: {model_dir}")

    generation_file = model_path / GENERATION_FILENAME
    if not generation_file.exists():
        raise FileNotFoundError(f"Generation file not found: {generation_file}")

    generation = joblib.load(generation_file)
    logger.info(
        f"Loaded generation {generation.model_version} from {generation_file}: "
        f"{generation.matrix.shape[0]} users, {generation.matrix.shape[1]} products"
    )

    return generation


def load_generation_metadata(model_dir: str) -> Optional[dict]:
    """Summary written next to a saved generation, or None if absent."""
    metadata_file = Path(model_dir) / GENERATION_METADATA_FILENAME
    if not metadata_file.exists():
        return None
    return joblib.load(metadata_file)


def check_generation_exists(model_dir: str) -> bool:
    """Check if a saved generation exists.

    Args:
        model_dir: Directory path where artifacts should be stored.

    Returns:
        True if the generation file exists, False otherwise.
    """
    return (Path(model_dir) / GENERATION_FILENAME).exists()
