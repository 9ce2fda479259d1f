"""
Rate tier selection for recurring commissions.

Given the product rule in force and the billing period being charged, decide
which rate applies (initial, renewal or trailing) or that nothing is due.
Nothing being due is an ordinary outcome, returned as NoCommissionDue rather
than raised.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENTS = Decimal("0.01")
DEFAULT_TRAILING_RATE_MULTIPLIER = Decimal("0.5")

FIRST_PAYMENT_ONLY_MESSAGE = "No commission for renewals - first payment only rule"
DURATION_EXCEEDED_MESSAGE = "Commission duration exceeded"
TRAILING_EXCEEDED_MESSAGE = "Trailing commission period exceeded"


@dataclass(frozen=True)
class TierResult:
    rate: Decimal
    tracking_type: str  # initial, renewal, trailing


@dataclass(frozen=True)
class NoCommissionDue:
    reason: str


def determine_tier(rule, period_number: int) -> Union[TierResult, NoCommissionDue]:
    """
    rule is anything exposing the ProductCommissionRule rate columns.
    A missing mrr_duration_months means the renewal window never closes.
    """
    if period_number < 1:
        raise ValueError(f"period_number must be >= 1, got {period_number}")

    if period_number == 1:
        return TierResult(rate=Decimal(rule.initial_sale_rate), tracking_type="initial")

    renewal_rate = Decimal(rule.renewal_rate)
    mrr_type = rule.mrr_commission_type
    duration = rule.mrr_duration_months

    if mrr_type == "first_payment_only":
        return NoCommissionDue(FIRST_PAYMENT_ONLY_MESSAGE)

    if mrr_type == "duration" and duration is not None and period_number > duration:
        return NoCommissionDue(DURATION_EXCEEDED_MESSAGE)

    if mrr_type == "trailing" and duration is not None:
        trailing = rule.trailing_months or 0
        if period_number > duration + trailing:
            return NoCommissionDue(TRAILING_EXCEEDED_MESSAGE)
        if period_number > duration:
            multiplier = rule.trailing_rate_multiplier
            if multiplier is None:
                multiplier = DEFAULT_TRAILING_RATE_MULTIPLIER
            return TierResult(rate=renewal_rate * Decimal(multiplier), tracking_type="trailing")

    return TierResult(rate=renewal_rate, tracking_type="renewal")


def round_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def commission_amount(base_amount: Decimal, rate: Decimal) -> Decimal:
    """base_amount * rate / 100, rounded half-up to cents."""
    return round_money(Decimal(base_amount) * Decimal(rate) / Decimal(100))
