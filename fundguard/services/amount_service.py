"""
Goal-amount reasonableness check against per-category funding ranges.
"""

from types import MappingProxyType
from typing import NamedTuple

from fundguard.models.analysis import SignalCollector, SubScore
from fundguard.models.snapshot import Category


class AmountRange(NamedTuple):
    min: float
    max: float
    typical: float


CATEGORY_LIMITS = MappingProxyType({
    Category.EDUCATION.value: AmountRange(1_000, 100_000, 25_000),
    Category.MEDICAL.value: AmountRange(5_000, 500_000, 50_000),
    Category.ENVIRONMENT.value: AmountRange(2_000, 200_000, 30_000),
    Category.ANIMAL_WELFARE.value: AmountRange(500, 75_000, 15_000),
    Category.DISASTER_RELIEF.value: AmountRange(10_000, 1_000_000, 100_000),
    Category.SPORTS.value: AmountRange(1_000, 100_000, 20_000),
    Category.ELDERLY_CARE.value: AmountRange(2_000, 150_000, 25_000),
    Category.CHILD_WELFARE.value: AmountRange(1_000, 100_000, 25_000),
})
DEFAULT_LIMITS = AmountRange(1_000, 100_000, 25_000)

# (multiplier of max, points), checked in order
OVER_MAX_TIERS = ((3.0, 40), (1.5, 25), (1.0, 15))
FAR_BELOW_MIN_DIVISOR = 3
FAR_BELOW_MIN_POINTS = 25
BELOW_MIN_POINTS = 15

# (round multiple, points), most specific first; only the first match applies
ROUND_NUMBER_TIERS = ((100_000, 15), (10_000, 10), (1_000, 5))

TYPICAL_HIGH_MULTIPLE = 5
TYPICAL_HIGH_POINTS = 20
TYPICAL_LOW_DIVISOR = 10
TYPICAL_LOW_POINTS = 10

SUSPICIOUS_AMOUNTS = frozenset({9_999, 99_999, 999_999})
REPEATED_DIGIT_MIN_LENGTH = 4
SUSPICIOUS_AMOUNT_POINTS = 20


def limits_for(category) -> AmountRange:
    key = category.value if isinstance(category, Category) else category
    return CATEGORY_LIMITS.get(key, DEFAULT_LIMITS)


def _is_suspicious_literal(amount: float) -> bool:
    if amount != int(amount):
        return False
    value = int(amount)
    if value in SUSPICIOUS_AMOUNTS:
        return True
    digits = str(value)
    return len(digits) >= REPEATED_DIGIT_MIN_LENGTH and len(set(digits)) == 1


def analyze_amount(goal_amount: float, category) -> SubScore:
    """Score ``goal_amount`` against the reasonable range for ``category``."""
    signals = SignalCollector("amount", "Goal Amount")
    limits = limits_for(category)
    amount = float(goal_amount)

    for multiple, points in OVER_MAX_TIERS:
        if amount > limits.max * multiple:
            signals.add(points, f"Goal is over {multiple:g}x the category maximum of {limits.max:,.0f}")
            break

    if amount < limits.min / FAR_BELOW_MIN_DIVISOR:
        signals.add(FAR_BELOW_MIN_POINTS, "Goal is far below what this category usually needs")
    elif amount < limits.min:
        signals.add(BELOW_MIN_POINTS, "Goal is below the category minimum")

    if amount > 0 and amount == int(amount):
        for multiple, points in ROUND_NUMBER_TIERS:
            if amount >= multiple and int(amount) % multiple == 0:
                signals.add(points, f"Goal is a round multiple of {multiple:,}")
                break

    if amount > limits.typical * TYPICAL_HIGH_MULTIPLE:
        signals.add(TYPICAL_HIGH_POINTS, "Goal is far above the typical amount for this category")
    elif amount < limits.typical / TYPICAL_LOW_DIVISOR:
        signals.add(TYPICAL_LOW_POINTS, "Goal is far below the typical amount for this category")

    if _is_suspicious_literal(amount):
        signals.add(SUSPICIOUS_AMOUNT_POINTS, f"Goal {amount:,.0f} is a known suspicious amount")

    return signals.result()
