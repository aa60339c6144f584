"""
Pricing Module - External Price Feed Service
===============================================
Fetches the gold/silver spot price (USD per troy ounce) and the USD → GHS
exchange rate from public APIs, and stores them as daily prices.
"""

import logging
from typing import Dict

import httpx
from sqlalchemy.orm import Session

from config.settings import PRICE_FEED_URL, EXCHANGE_FEED_URL, PRICE_FEED_TIMEOUT
from modules.pricing.models import PriceType
from modules.pricing.service import has_price_today, record_price

logger = logging.getLogger("goldbod.pricing.feed")

FEED_USER_AGENT = "GoldBod-AssayOffice/1.0"


def _get_json(url: str):
    resp = httpx.get(url, headers={"User-Agent": FEED_USER_AGENT}, timeout=PRICE_FEED_TIMEOUT)
    resp.raise_for_status()
    return resp.json()


def fetch_spot_prices() -> Dict[str, float]:
    """
    Fetch metal spot prices in one HTTP call.

    The feed answers with a list of single-key objects, e.g.
    [{"gold": 2350.1}, {"silver": 29.8}, ...].

    Returns:
        dict mapping metal → USD per troy ounce

    Raises:
        ValueError: If the response is malformed or has no gold price.
        httpx.HTTPError: On network/HTTP errors.
    """
    data = _get_json(PRICE_FEED_URL)
    if not isinstance(data, list):
        raise ValueError(f"Spot feed returned unexpected payload: {data!r}")

    prices = {}
    for item in data:
        if isinstance(item, dict):
            for metal, value in item.items():
                prices[metal.lower()] = float(value)

    if prices.get("gold", 0) <= 0:
        raise ValueError(f"Invalid gold price from spot feed: {prices.get('gold')}")

    logger.info(f"Fetched spot prices: gold={prices['gold']}, silver={prices.get('silver')}")
    return prices


def fetch_exchange_rate(currency: str = "GHS") -> float:
    """
    Fetch the USD → `currency` rate.

    Raises:
        ValueError: If the rate is missing or non-positive.
        httpx.HTTPError: On network/HTTP errors.
    """
    data = _get_json(EXCHANGE_FEED_URL)
    rate = (data.get("rates") or {}).get(currency)
    if not rate or rate <= 0:
        raise ValueError(f"Invalid USD/{currency} rate from exchange feed: {rate}")

    logger.info(f"Fetched exchange rate: 1 USD = {rate} {currency}")
    return float(rate)


def update_daily_prices(db: Session) -> int:
    """
    Store today's prices for every type that has none yet. Caller must commit.

    Returns:
        number of price rows recorded
    """
    count = 0
    missing_metals = [
        t for t in (PriceType.COMMODITY.value, PriceType.SILVER.value)
        if not has_price_today(db, t)
    ]
    if missing_metals:
        spot = fetch_spot_prices()
        if PriceType.COMMODITY.value in missing_metals:
            record_price(db, PriceType.COMMODITY.value, spot["gold"], source="feed", updated_by="system:feed")
            count += 1
        if PriceType.SILVER.value in missing_metals and spot.get("silver", 0) > 0:
            record_price(db, PriceType.SILVER.value, spot["silver"], source="feed", updated_by="system:feed")
            count += 1

    if not has_price_today(db, PriceType.EXCHANGE.value):
        record_price(db, PriceType.EXCHANGE.value, fetch_exchange_rate(), source="feed", updated_by="system:feed")
        count += 1

    return count
