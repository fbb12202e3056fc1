"""Raw transaction feed: remote JSON endpoint with a synthetic fallback."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Literal, Tuple

import requests

from sales_core.config import Settings
from sales_core.errors import FeedUnavailableError

logger = logging.getLogger(__name__)

Source = Literal["remote", "synthetic"]

SYNTHETIC_CITIES = ("Chicago", "Houston", "Los Angeles", "New York", "Phoenix", "Seattle")
SYNTHETIC_PRODUCTS = (
    ("Laptop", "EL-100"),
    ("Headphones", "EL-200"),
    ("Sneakers", "FA-100"),
    ("Jacket", "FA-200"),
    ("Blender", "HO-100"),
    ("Desk Lamp", "HO-200"),
    ("Moisturizer", "BE-100"),
    ("Perfume", "BE-200"),
)
SYNTHETIC_REPS = ("Alice Chen", "Bob Martinez", "Carol Singh", "David Okafor", "Erin Walsh")
SYNTHETIC_START = date(2024, 1, 1)
SYNTHETIC_DAYS = 366


@dataclass(frozen=True)
class FeedResult:
    records: Tuple[Dict[str, Any], ...]
    source: Source


def fetch_raw_records(url: str, timeout: float = 10.0) -> List[Dict[str, Any]]:
    resp = requests.get(url, timeout=timeout)
    resp.raise_for_status()
    payload = resp.json()
    if isinstance(payload, dict):
        for key in ("records", "data"):
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
    if not isinstance(payload, list):
        raise ValueError(f"Feed at {url} did not return a list of records")
    return payload


def generate_synthetic_records(count: int = 200, seed: int = 42) -> List[Dict[str, Any]]:
    rng = random.Random(seed)
    records: List[Dict[str, Any]] = []
    for i in range(count):
        product, sku = rng.choice(SYNTHETIC_PRODUCTS)
        day = SYNTHETIC_START + timedelta(days=rng.randrange(SYNTHETIC_DAYS))
        records.append(
            {
                "transaction_id": f"T{i + 1:05d}",
                "date": day.isoformat(),
                "city": rng.choice(SYNTHETIC_CITIES),
                "product": product,
                "sku": sku,
                "sales_rep": rng.choice(SYNTHETIC_REPS),
                "quantity": rng.randint(1, 20),
                "price": f"{rng.randint(50, 549)}.00",
            }
        )
    return records


def load_raw_records(settings: Settings) -> FeedResult:
    if settings.feed_url:
        try:
            records = fetch_raw_records(settings.feed_url, timeout=settings.feed_timeout)
            logger.info("Fetched %d records from %s", len(records), settings.feed_url)
            return FeedResult(records=tuple(records), source="remote")
        except (requests.RequestException, ValueError) as exc:
            if not settings.fallback_to_synthetic:
                raise FeedUnavailableError(f"Could not load records from {settings.feed_url}: {exc}") from exc
            logger.warning("Feed %s failed (%s); using synthetic data", settings.feed_url, exc)

    records = generate_synthetic_records(settings.synthetic_count, settings.synthetic_seed)
    return FeedResult(records=tuple(records), source="synthetic")
