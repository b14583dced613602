# scoring.py
from __future__ import annotations
import math
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple

from ..schemas import (
    Category, CustomerPriority, Order, PriorityClass, PrioritySummary,
    ScoreBreakdown, ScoredOrder, as_utc,
)

# -----------------------------
# Lookup tables
# -----------------------------
TEMP_REQUIREMENTS: Mapping[str, Tuple[int, str]] = MappingProxyType({
    Category.HOT_FOOD.value:    (100, "hot 60–70°C"),
    Category.FROZEN.value:      (90, "frozen −18°C"),
    Category.CHILLED.value:     (75, "chilled 0–4°C"),
    Category.MEDICINE.value:    (60, "ambient (medicine)"),
    Category.BEVERAGE.value:    (40, "cool 15–20°C"),
    Category.SNACK.value:       (20, "ambient"),
    Category.DAILY_GOODS.value: (20, "ambient"),
})
FALLBACK_TEMP = TEMP_REQUIREMENTS[Category.SNACK.value]

CUSTOMER_PRIORITY_SCORES: Mapping[str, int] = MappingProxyType({
    CustomerPriority.URGENT.value: 100,
    CustomerPriority.HIGH.value: 75,
    CustomerPriority.STANDARD.value: 50,
    CustomerPriority.ECONOMY.value: 25,
})
DEFAULT_CUSTOMER_SCORE = 50

WEIGHTS: Mapping[str, float] = MappingProxyType({
    "temperature": 0.30,
    "expiration": 0.25,
    "customer_priority": 0.15,
    "value": 0.10,
    "delivery_window": 0.15,
    "fragility": 0.05,
})

THRESHOLDS: Mapping[str, float] = MappingProxyType({
    "critical": 75,  # >= 75 → critical
    "high": 60,      # >= 60 → high
    "medium": 40,    # >= 40 → medium, else low
})

FRAGILE_SCORE = 100
STURDY_SCORE = 30
# an order without products has nothing perishable in it
NO_EXPIRATION_SCORE = 30

# -----------------------------
# Step functions
# -----------------------------
def score_expiration(hours: float) -> int:
    if hours <= 3:
        return 100
    if hours <= 8:
        return 90
    if hours <= 24:
        return 70
    if hours <= 168:
        return 50
    return 30

def score_value(value: float) -> int:
    if value >= 500:
        return 100
    if value >= 200:
        return 80
    if value >= 100:
        return 60
    if value >= 50:
        return 40
    return 20

def score_delivery_window(minutes: float) -> int:
    # overdue orders (negative minutes) share the most urgent bucket
    if minutes <= 15:
        return 100
    if minutes <= 30:
        return 90
    if minutes <= 60:
        return 70
    if minutes <= 120:
        return 50
    return 30

def classify_priority(score: float) -> PriorityClass:
    if score >= THRESHOLDS["critical"]:
        return PriorityClass.CRITICAL
    if score >= THRESHOLDS["high"]:
        return PriorityClass.HIGH
    if score >= THRESHOLDS["medium"]:
        return PriorityClass.MEDIUM
    return PriorityClass.LOW

def round_half_up(value: float, places: int = 2) -> float:
    """Round half up on the scaled value, e.g. 0.125 -> 0.13."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor

def temperature_requirement(order: Order) -> Tuple[int, str]:
    """
    Returns (score, label) of the most demanding product.
    Ties go to the first product; unknown categories fall back to the snack entry.
    """
    best: Optional[Tuple[int, str]] = None
    for p in order.products:
        entry = TEMP_REQUIREMENTS.get(p.category, FALLBACK_TEMP)
        if best is None or entry[0] > best[0]:
            best = entry
    return best or FALLBACK_TEMP

def _flags_for(order: Order, minutes_remaining: float) -> List[str]:
    flags: List[str] = []
    if not order.products:
        flags.append("no_products")
    for p in order.products:
        if p.category not in TEMP_REQUIREMENTS:
            flags.append(f"unknown_category:{p.category}")
    if order.customer_priority not in CUSTOMER_PRIORITY_SCORES:
        flags.append(f"unknown_customer_priority:{order.customer_priority}")
    if minutes_remaining < 0:
        flags.append("overdue")
    # dedupe while preserving order
    seen = set()
    return [f for f in flags if not (f in seen or seen.add(f))]

# -----------------------------
# Main entry
# -----------------------------
def score_order(order: Order, now: datetime | None = None) -> ScoredOrder:
    """
    Scores one order. Pure: the result depends only on `order` and `now`.

    `now` defaults to the order's own `order_time`, so the delivery window is
    measured from when the order was placed.

    Orders with no products are still scored: temperature falls back to the
    snack entry, expiration to the long-shelf-life bucket, and the result
    carries a `no_products` flag.
    """
    now = as_utc(now) if now is not None else order.order_time
    products = order.products

    temp_score, temp_label = temperature_requirement(order)

    earliest = min((p.expiration_hours for p in products), default=None)
    expiration_score = score_expiration(earliest) if earliest is not None else NO_EXPIRATION_SCORE

    customer_score = CUSTOMER_PRIORITY_SCORES.get(order.customer_priority, DEFAULT_CUSTOMER_SCORE)

    total_value = sum(p.price * p.quantity for p in products)
    value_score = score_value(total_value)

    minutes_remaining = (order.delivery_window_end - now).total_seconds() / 60
    window_score = score_delivery_window(minutes_remaining)

    has_medicine = any(p.category == Category.MEDICINE.value for p in products)
    fragility_score = FRAGILE_SCORE if has_medicine else STURDY_SCORE

    breakdown = ScoreBreakdown(
        temperature=temp_score * WEIGHTS["temperature"],
        expiration=expiration_score * WEIGHTS["expiration"],
        customer_priority=customer_score * WEIGHTS["customer_priority"],
        value=value_score * WEIGHTS["value"],
        delivery_window=window_score * WEIGHTS["delivery_window"],
        fragility=fragility_score * WEIGHTS["fragility"],
    )
    priority_score = round_half_up(breakdown.total())

    return ScoredOrder(
        **dict(order),
        priority_score=priority_score,
        priority_class=classify_priority(priority_score),
        breakdown=breakdown,
        highest_temp_requirement=temp_label,
        total_value=total_value,
        earliest_expiration=earliest,
        minutes_until_deadline=math.floor(minutes_remaining + 0.5),
        flags=_flags_for(order, minutes_remaining),
    )

def rank_orders(orders: Iterable[Order], now: datetime | None = None) -> List[ScoredOrder]:
    """
    Scores every order and returns them most urgent first with
    `suggested_delivery_order` 1..N. Equal scores keep their input order.
    """
    scored = [score_order(o, now) for o in orders]
    # sorted() is stable
    ranked = sorted(scored, key=lambda s: s.priority_score, reverse=True)
    return [s.model_copy(update={"suggested_delivery_order": i})
            for i, s in enumerate(ranked, start=1)]

def summarize(scored: List[ScoredOrder]) -> PrioritySummary:
    counts = {c: 0 for c in PriorityClass}
    for s in scored:
        counts[s.priority_class] += 1
    avg = sum(s.priority_score for s in scored) / len(scored) if scored else 0.0
    return PrioritySummary(
        critical=counts[PriorityClass.CRITICAL],
        high=counts[PriorityClass.HIGH],
        medium=counts[PriorityClass.MEDIUM],
        low=counts[PriorityClass.LOW],
        avg_score=round_half_up(avg),
    )
