import pytest
from decimal import Decimal
from types import SimpleNamespace

from commission_engine.core.tier_calculator import (
    DURATION_EXCEEDED_MESSAGE,
    FIRST_PAYMENT_ONLY_MESSAGE,
    TRAILING_EXCEEDED_MESSAGE,
    NoCommissionDue,
    TierResult,
    commission_amount,
    determine_tier,
)

pytestmark = pytest.mark.core

def make_rule(**overrides):
    data = dict(
        initial_sale_rate=Decimal("10"),
        renewal_rate=Decimal("5"),
        mrr_commission_type="duration",
        mrr_duration_months=12,
        trailing_months=6,
        trailing_rate_multiplier=Decimal("0.5"),
    )
    data.update(overrides)
    return SimpleNamespace(**data)

@pytest.mark.parametrize("mrr_type", ["first_payment_only", "duration", "trailing", None])
def test_first_period_always_uses_initial_rate(mrr_type):
    result = determine_tier(make_rule(mrr_commission_type=mrr_type), 1)
    assert result == TierResult(rate=Decimal("10"), tracking_type="initial")

@pytest.mark.parametrize("period_number", [2, 3, 12, 50])
def test_first_payment_only_pays_nothing_after_first_period(period_number):
    result = determine_tier(make_rule(mrr_commission_type="first_payment_only"), period_number)
    assert isinstance(result, NoCommissionDue)
    assert result.reason == FIRST_PAYMENT_ONLY_MESSAGE

@pytest.mark.parametrize("duration", [2, 6, 12])
def test_duration_window_boundary(duration):
    rule = make_rule(mrr_commission_type="duration", mrr_duration_months=duration)
    assert determine_tier(rule, duration) == TierResult(rate=Decimal("5"), tracking_type="renewal")
    beyond = determine_tier(rule, duration + 1)
    assert isinstance(beyond, NoCommissionDue)
    assert beyond.reason == DURATION_EXCEEDED_MESSAGE

@pytest.mark.parametrize("duration,trailing", [(3, 2), (12, 6), (1, 1)])
def test_trailing_window_pays_half_renewal_rate(duration, trailing):
    rule = make_rule(mrr_commission_type="trailing", mrr_duration_months=duration, trailing_months=trailing)
    if duration > 1:
        assert determine_tier(rule, duration) == TierResult(rate=Decimal("5"), tracking_type="renewal")
    for period in range(duration + 1, duration + trailing + 1):
        assert determine_tier(rule, period) == TierResult(rate=Decimal("2.5"), tracking_type="trailing")
    beyond = determine_tier(rule, duration + trailing + 1)
    assert isinstance(beyond, NoCommissionDue)
    assert beyond.reason == TRAILING_EXCEEDED_MESSAGE

def test_trailing_multiplier_is_configurable():
    rule = make_rule(mrr_commission_type="trailing", mrr_duration_months=2, trailing_months=2,
                     trailing_rate_multiplier=Decimal("0.25"))
    assert determine_tier(rule, 3) == TierResult(rate=Decimal("1.25"), tracking_type="trailing")

def test_trailing_multiplier_defaults_to_half_when_unset():
    rule = make_rule(mrr_commission_type="trailing", mrr_duration_months=2, trailing_months=2,
                     trailing_rate_multiplier=None)
    assert determine_tier(rule, 3).rate == Decimal("2.5")

def test_no_mrr_type_pays_renewal_rate_forever():
    rule = make_rule(mrr_commission_type=None, mrr_duration_months=3)
    assert determine_tier(rule, 40) == TierResult(rate=Decimal("5"), tracking_type="renewal")

def test_duration_without_months_never_expires():
    rule = make_rule(mrr_commission_type="duration", mrr_duration_months=None)
    assert determine_tier(rule, 100).tracking_type == "renewal"

def test_period_number_must_be_positive():
    with pytest.raises(ValueError):
        determine_tier(make_rule(), 0)

@pytest.mark.parametrize("base,rate,expected", [
    ("100", "10", "10.00"),
    ("100", "2.5", "2.50"),
    ("100", "0", "0.00"),
    ("0", "10", "0.00"),
    ("99.99", "7.5", "7.50"),   # 7.49925 rounds half-up
    ("33.33", "33.3333", "11.11"),
    ("1234.56", "0.125", "1.54"),
])
def test_commission_amount_is_rounded_to_cents(base, rate, expected):
    assert commission_amount(Decimal(base), Decimal(rate)) == Decimal(expected)
