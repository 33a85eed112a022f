"""Generate a synthetic catalog and interaction log for development.

Writes ``products.json``, ``users.json`` and ``events.csv`` into a data
directory in the layout read by ``hyperrec.recommender.utils.load_data_dir``.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_events
        df = generate_fake_events(users, products, num_events=500)
"""

import argparse
import json
import random
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

# Default configuration constants
DEFAULT_NUM_USERS = 50
DEFAULT_NUM_PRODUCTS = 100
DEFAULT_NUM_EVENTS = 1000
DEFAULT_DAYS_BACK = 90
SECONDS_PER_DAY = 86400

CATEGORIES = ["dresses", "shoes", "outerwear", "accessories", "knitwear", "denim"]
BRANDS = ["Northwind", "Aster", "Loomcraft", "Vela", "Kestrel"]
COLORS = ["black", "white", "navy", "red", "olive", "camel"]
SIZES = ["XS", "S", "M", "L", "XL"]
MATERIALS = ["cotton", "wool", "linen", "leather", "silk"]
SEASONS = ["spring", "summer", "fall", "winter"]
ADJECTIVES = ["premium", "classic", "handcrafted", "everyday", "limited", "sale"]

# Relative frequency of each interaction kind
KIND_WEIGHTS = {
    "view": 0.7,
    "add_to_wishlist": 0.1,
    "add_to_cart": 0.12,
    "purchase": 0.08,
}


def generate_fake_products(num_products: int = DEFAULT_NUM_PRODUCTS) -> List[Dict]:
    """Create product records with attributes and analytics counters."""
    if num_products <= 0:
        raise ValueError("num_products must be positive")

    products = []
    for i in range(1, num_products + 1):
        category = random.choice(CATEGORIES)
        adjective = random.choice(ADJECTIVES)
        views = random.randint(0, 5000)
        purchases = random.randint(0, views // 20 + 1)
        products.append({
            "id": f"p{i}",
            "name": f"{adjective.title()} {category[:-1] if category.endswith('s') else category}",
            "description": f"A {adjective} piece from our {category} collection. Quality guaranteed.",
            "price": round(random.uniform(10, 600), 2),
            "category": category,
            "brand": random.choice(BRANDS),
            "status": "active" if random.random() > 0.05 else "archived",
            "featured": random.random() < 0.15,
            "attributes": {
                "colors": random.sample(COLORS, k=random.randint(1, 3)),
                "sizes": random.sample(SIZES, k=random.randint(1, 4)),
                "materials": random.sample(MATERIALS, k=random.randint(1, 2)),
                "season": random.sample(SEASONS, k=random.randint(1, 2)),
            },
            "analytics": {
                "views": views,
                "purchases": purchases,
                "conversion_rate": round(purchases / views * 100, 2) if views else 0.0,
                "average_rating": round(random.uniform(2.5, 5.0), 1),
                "trending_score": round(random.random(), 3),
            },
        })
    return products


def generate_fake_users(num_users: int = DEFAULT_NUM_USERS) -> List[Dict]:
    """Create user records with preferences, scores and behavior."""
    if num_users <= 0:
        raise ValueError("num_users must be positive")

    users = []
    for i in range(1, num_users + 1):
        low = round(random.uniform(0, 150), 2)
        purchases = random.randint(0, 40)
        spent = round(purchases * random.uniform(20, 250), 2)
        users.append({
            "id": f"u{i}",
            "is_active": True,
            "preferences": {
                "price_range": {"min": low, "max": round(low + random.uniform(50, 500), 2)},
                "categories": random.sample(CATEGORIES, k=random.randint(1, 3)),
                "brands": random.sample(BRANDS, k=random.randint(0, 2)),
            },
            "personalization_scores": {
                "fashion_style": round(random.random(), 2),
                "price_consciousness": round(random.random(), 2),
                "brand_loyalty": round(random.random(), 2),
                "trend_follower": round(random.random(), 2),
                "quality_focused": round(random.random(), 2),
                "impulse_buyer": round(random.random(), 2),
            },
            "behavior": {
                "total_purchases": purchases,
                "total_spent": spent,
                "average_order_value": round(spent / purchases, 2) if purchases else 0.0,
                "click_patterns": {
                    "time_of_day": [{"hour": h, "clicks": random.randint(0, 5)} for h in range(24)],
                    "day_of_week": [{"day": d, "clicks": random.randint(0, 10)} for d in range(7)],
                },
            },
            "recently_viewed": [],
        })
    return users


def generate_fake_events(
    users: List[Dict],
    products: List[Dict],
    num_events: int = DEFAULT_NUM_EVENTS,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> pd.DataFrame:
    """Generate interaction events between the given users and products.

    Users pick products from their preferred categories most of the time,
    so the collaborative signal has some structure.

    Returns:
        DataFrame with columns user_id, product_id, kind, timestamp and
        duration (seconds, views only), sorted by timestamp.

    Raises:
        ValueError: If there are no users/products, num_events is not
            positive, or start_date is not before end_date.
    """
    if not users or not products or num_events <= 0:
        raise ValueError("users, products and num_events must be non-empty/positive")

    if end_date is None:
        end_date = datetime.now(timezone.utc)
    if start_date is None:
        start_date = end_date - timedelta(days=DEFAULT_DAYS_BACK)
    if start_date >= end_date:
        raise ValueError("start_date must be before end_date")

    by_category: Dict[str, List[str]] = {}
    for product in products:
        by_category.setdefault(product["category"], []).append(product["id"])
    all_ids = [p["id"] for p in products]

    kinds = list(KIND_WEIGHTS)
    weights = list(KIND_WEIGHTS.values())
    span_seconds = int((end_date - start_date).total_seconds())

    events = []
    for _ in range(num_events):
        user = random.choice(users)
        preferred = [
            pid
            for category in user["preferences"]["categories"]
            for pid in by_category.get(category, [])
        ]
        pool = preferred if preferred and random.random() < 0.8 else all_ids
        kind = random.choices(kinds, weights=weights)[0]

        events.append({
            "user_id": user["id"],
            "product_id": random.choice(pool),
            "kind": kind,
            "timestamp": start_date + timedelta(seconds=random.randrange(span_seconds)),
            "duration": round(random.uniform(2, 900), 1) if kind == "view" else None,
        })

    df = pd.DataFrame(events)
    return df.sort_values("timestamp").reset_index(drop=True)


def write_data_dir(
    output_dir: Path,
    users: List[Dict],
    products: List[Dict],
    events: pd.DataFrame,
) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    with open(output_dir / "products.json", "w") as f:
        json.dump(products, f, indent=2)
    with open(output_dir / "users.json", "w") as f:
        json.dump(users, f, indent=2)
    events.to_csv(output_dir / "events.csv", index=False)


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a synthetic HyperRec data directory.")
    parser.add_argument("--output-dir", default=str(Path(__file__).parent.parent / "data"))
    parser.add_argument("--users", type=int, default=DEFAULT_NUM_USERS)
    parser.add_argument("--products", type=int, default=DEFAULT_NUM_PRODUCTS)
    parser.add_argument("--events", type=int, default=DEFAULT_NUM_EVENTS)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    if args.seed is not None:
        random.seed(args.seed)

    print(f"Generating {args.users} users, {args.products} products, {args.events} events...")

    try:
        products = generate_fake_products(args.products)
        users = generate_fake_users(args.users)
        events = generate_fake_events(users, products, args.events)
    except ValueError as e:
        print(f"Error generating data: {e}")
        return

    output_dir = Path(args.output_dir)
    write_data_dir(output_dir, users, products, events)

    print(f"\nData generated successfully!")
    print(f"Saved to: {output_dir}")
    print(f"\nEvents preview:")
    print(events.head(10))
    print(f"\nEvents by kind:")
    print(events["kind"].value_counts().to_string())
    print(f"\n  Date range: {events['timestamp'].min()} to {events['timestamp'].max()}")


if __name__ == '__main__':
    main()
