"""
Trip Pricing Calculator
=======================

Formula
-------
distance_price = distance_km x price_per_km
time_price     = (duration_minutes / 60) x price_per_hour
total_price    = round_half_up( max(base + distance_price + time_price, minimum_fare) )

Only the combined total is floored by the minimum fare and rounded; the
component prices keep full precision so they can be shown as a breakdown.

The calculator is pure and works from a rate card alone, so the same code
serves price quotes (no booking yet) and the snapshot stored on a booking.

Complexity: O(1) per price calculation.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal


@dataclass(frozen=True)
class RateCard:
    base_price: float
    price_per_km: float
    price_per_hour: float
    minimum_fare: float
    currency: str = "BDT"


@dataclass(frozen=True)
class PriceBreakdown:
    base_price: float
    distance_price: float
    time_price: float
    total_price: int

    def as_dict(self) -> dict[str, float]:
        return {
            "base_price": self.base_price,
            "distance_price": self.distance_price,
            "time_price": self.time_price,
            "total_price": self.total_price,
        }


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3)."""
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_price(
    rate_card: RateCard, distance_km: float, duration_minutes: float
) -> PriceBreakdown:
    base_price = rate_card.base_price
    distance_price = distance_km * rate_card.price_per_km
    time_price = (duration_minutes / 60) * rate_card.price_per_hour

    raw_total = base_price + distance_price + time_price
    total = round_half_up(max(raw_total, rate_card.minimum_fare))

    return PriceBreakdown(
        base_price=base_price,
        distance_price=distance_price,
        time_price=time_price,
        total_price=total,
    )


def describe_breakdown(
    rate_card: RateCard,
    breakdown: PriceBreakdown,
    distance_km: float,
    duration_minutes: float,
) -> dict[str, str]:
    """Human-readable lines for a quote screen."""
    cur = rate_card.currency
    hours = round_half_up(duration_minutes / 60)
    return {
        "base_price": f"{breakdown.base_price:g} {cur} (Starting fare)",
        "distance_price": (
            f"{breakdown.distance_price:g} {cur} "
            f"({distance_km:g} km x {rate_card.price_per_km:g} {cur}/km)"
        ),
        "time_price": (
            f"{breakdown.time_price:g} {cur} "
            f"({hours} hours x {rate_card.price_per_hour:g} {cur}/hour)"
        ),
        "minimum_fare": f"{rate_card.minimum_fare:g} {cur} (Minimum charge)",
    }
