"""Command-line interface for building a model generation.

Builds the interaction matrix and embedding indexes from a data directory
and saves the generation so the API and CLI can serve it without
rebuilding.

Example:
    Build from the default data directory:
        $ python scripts/build_model.py

    Build from another directory into a custom output:
        $ python scripts/build_model.py --data-dir data/staging \\
            --output-dir models/staging
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from hyperrec.recommender.generation import build_generation
from hyperrec.recommender.store import InteractionStore
from hyperrec.recommender.utils import (
    load_data_dir,
    load_generation_metadata,
    save_generation,
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the script.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise, use INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build and save a recommendation model generation.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/build_model.py
  python scripts/build_model.py --data-dir data/staging --output-dir models/staging
  python scripts/build_model.py --max-events-per-user 50 --verbose
        """,
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default="data",
        help="Directory with users.json, products.json and events.csv (default: data)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="models",
        help="Directory where the generation will be saved (default: models)",
    )
    parser.add_argument(
        "--max-events-per-user",
        type=int,
        default=100,
        help="Most recent events kept per user (default: 100)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )
    return parser.parse_args()


def main() -> int:
    """Main entry point for the build script.

    Returns:
        Exit code: 0 on success, 1 on error.
    """
    try:
        args = parse_arguments()
        setup_logging(verbose=args.verbose)
        logger = logging.getLogger(__name__)

        data_path = Path(args.data_dir)
        if not data_path.is_dir():
            raise FileNotFoundError(f"Data directory not found: {args.data_dir}")

        catalog, events = load_data_dir(args.data_dir)
        store = InteractionStore(args.max_events_per_user)
        store.extend(events)

        previous = load_generation_metadata(args.output_dir)
        version = 1
        if previous is not None:
            version = int(previous["model_version"].split("-")[-1]) + 1

        generation = build_generation(catalog, store, version=version)
        save_generation(generation, args.output_dir)

        logger.info("=" * 70)
        logger.info("Build Summary")
        logger.info("=" * 70)
        for key, value in generation.summary().items():
            logger.info(f"{key + ':':<16} {value}")
        logger.info(f"{'events:':<16} {len(store)}")
        logger.info(f"Saved to: {Path(args.output_dir).absolute()}")
        logger.info("=" * 70)

        return 0

    except FileNotFoundError as e:
        logging.error(f"File error: {e}")
        return 1
    except ValueError as e:
        logging.error(f"Validation error: {e}")
        return 1
    except KeyboardInterrupt:
        logging.warning("Build interrupted by user")
        return 130
    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
