"""Subscription pricing.

Monthly price is ``unit price x meal types x delivery days x 4.3``. The 4.3
multiplier approximates weeks per month and must stay exactly 4.3 so stored
prices stay comparable with previously issued ones.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Optional

from babel.numbers import format_currency

from .errors import InvalidConfiguration

PLAN_PRICES: Dict[str, int] = {
    "diet": 30000,
    "protein": 40000,
    "royal": 60000,
}

MEAL_TYPES = ("breakfast", "lunch", "dinner")
DELIVERY_DAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

MONTHLY_MULTIPLIER = Decimal("4.3")

DEFAULT_LOCALE = "id_ID"
DEFAULT_CURRENCY = "IDR"


def unit_price(plan: str) -> int:
    try:
        return PLAN_PRICES[plan]
    except KeyError as exc:
        raise InvalidConfiguration(
            f"Unknown plan '{plan}'. Plan must be one of: {', '.join(PLAN_PRICES)}"
        ) from exc


def compute_total_price(
    plan: Optional[str],
    meal_types: Iterable[str],
    delivery_days: Iterable[str],
) -> int:
    """Return the monthly price in the smallest currency unit.

    Incomplete selections (no plan, no meal types or no delivery days) price
    at ``0`` instead of raising. Duplicates in either collection are ignored.
    """
    meals = set(meal_types or ())
    days = set(delivery_days or ())
    if not plan or not meals or not days:
        return 0
    base = Decimal(unit_price(plan) * len(meals) * len(days))
    return int((base * MONTHLY_MULTIPLIER).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_price(
    amount: int,
    locale: str = DEFAULT_LOCALE,
    currency: str = DEFAULT_CURRENCY,
) -> str:
    """Locale-aware currency string, e.g. ``Rp 774.000,00`` for id_ID."""
    return format_currency(amount, currency, locale=locale)
