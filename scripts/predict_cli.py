"""CLI script for getting product recommendations.

Useful for testing and evaluation. Loads a data directory, serves a saved
generation when one exists (otherwise builds one), and prints the
recommendations for a user.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from hyperrec.config import load_config
from hyperrec.recommender.engine import RecommendationEngine, RecommendationResult
from hyperrec.recommender.utils import check_generation_exists, load_data_dir, load_generation

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def build_engine(data_dir: str, model_dir: str, rebuild: bool = False) -> RecommendationEngine:
    """Create an engine over ``data_dir`` with a ready generation.

    Args:
        data_dir: Directory with users.json, products.json and events.csv
        model_dir: Directory with a saved generation
        rebuild: Ignore the saved generation and build from the events

    Returns:
        Engine ready to serve recommendations
    """
    config = load_config()
    config.background_refresh = False
    config.scheduler_enabled = False

    catalog, events = load_data_dir(data_dir)
    engine = RecommendationEngine(catalog, config=config)

    if not rebuild and check_generation_exists(model_dir):
        engine.store.extend(events)
        engine.handle.swap(load_generation(model_dir))
    else:
        logger.info("No saved generation, building from events")
        engine.start(events)

    return engine


def print_result(result: RecommendationResult, explain: bool = False) -> None:
    label = "fallback" if result.fallback else result.model_version
    print(f"\nRecommendations for user {result.user_id} ({label}):")

    if not explain:
        print(f"  Top {len(result)} products: {result.product_ids}")
        return

    for rank, candidate in enumerate(result.candidates, start=1):
        sources = ", ".join(sorted(s.value for s in candidate.sources))
        print(
            f"  {rank:>2}. {candidate.product_id:<12} score={candidate.score:.4f} "
            f"boost={candidate.boost:.2f} sources=[{sources}]"
        )


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Get product recommendations for a user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/predict_cli.py u42
  python scripts/predict_cli.py u42 --limit 5
  python scripts/predict_cli.py u42 --explain
  python scripts/predict_cli.py u42 --similar p7
        """
    )

    parser.add_argument("user_id", type=str, help="User ID to get recommendations for")
    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of recommendations to return (default: 10)"
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default="data",
        help="Directory containing catalog and events (default: data)"
    )
    parser.add_argument(
        "--model-dir",
        type=str,
        default="models",
        help="Directory containing a saved generation (default: models)"
    )
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Build a fresh generation instead of loading the saved one"
    )
    parser.add_argument(
        "--include-viewed",
        action="store_true",
        help="Keep recently viewed products in the results"
    )
    parser.add_argument(
        "--similar",
        type=str,
        default=None,
        metavar="PRODUCT_ID",
        help="Also print products similar to this one"
    )
    parser.add_argument(
        "--explain",
        action="store_true",
        help="Show score, boost and sources for each recommendation"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    try:
        engine = build_engine(args.data_dir, args.model_dir, rebuild=args.rebuild)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    result = engine.get_recommendations(
        args.user_id,
        limit=args.limit,
        exclude_recently_viewed=not args.include_viewed,
    )
    print_result(result, explain=args.explain)

    if args.similar:
        similar = engine.similar_products(args.similar, limit=args.limit)
        print(f"\nProducts similar to {args.similar}:")
        for candidate in similar:
            print(f"  {candidate.product_id:<12} similarity={candidate.score:.4f}")

    print()


if __name__ == "__main__":
    main()
