import pytest
from sqlalchemy.orm import Session
from decimal import Decimal
from datetime import date

from commission_engine.core.commissions_calculator import (
    STAGE_NOT_MET_MESSAGE,
    award_manual_bonus,
    record_commissionable_event,
    record_opportunity_event,
    record_subscription_event,
)
from commission_engine.core.exceptions import InvalidRequest, NoActiveRuleFound, NoAssignmentFound
from commission_engine.core.tier_calculator import (
    DURATION_EXCEEDED_MESSAGE,
    FIRST_PAYMENT_ONLY_MESSAGE,
    TRAILING_EXCEEDED_MESSAGE,
)
from commission_engine.crud import crud_commission, crud_event, crud_lifecycle, crud_recurring
from commission_engine.models.commission import CommissionRecord as CommissionRecordModel
from commission_engine.models.event import CommissionEvent as CommissionEventModel
from commission_engine.schemas.commission import ManualBonusCreate
from commission_engine.schemas.event import CommissionableEventRequest
from tests.conftest import (
    TEST_ORG_ID,
    create_opportunity_assignment,
    create_pipeline,
    create_product_assignment,
    create_rule,
)

pytestmark = pytest.mark.core

SUB = "sub_1"

def _charge(subscription_id: str = SUB, product_id: str = "prod_crm", amount: str = "100", **extra):
    return CommissionableEventRequest(subscription_id=subscription_id, product_id=product_id, amount=Decimal(amount), **extra)

def _opportunity(opportunity_id: str = "opp_1", amount: str = "1000", **extra):
    return CommissionableEventRequest(
        event_type="opportunity_won", opportunity_id=opportunity_id, product_id="prod_crm", amount=Decimal(amount), **extra
    )


# Subscription path

@pytest.mark.asyncio
async def test_trailing_schedule_over_six_charges(db_session: Session, trailing_rule, product_assignment):
    expected = [
        (1, "initial", Decimal("10.00")),
        (2, "renewal", Decimal("5.00")),
        (3, "renewal", Decimal("5.00")),
        (4, "trailing", Decimal("2.50")),
        (5, "trailing", Decimal("2.50")),
    ]
    for period, tracking_type, amount in expected:
        outcome = await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge())
        assert outcome.commission_due is True
        assert outcome.period_number == period
        record = outcome.commission_records[0]
        assert record.commission_amount == amount
        assert record.calculation_method == f"{tracking_type}_subscription"
        assert record.product_rule_id == trailing_rule.id
        assert record.user_id == product_assignment.user_id
        assert record.status == "pending"
        assert record.calculation_details["kind"] == "subscription"
        assert record.calculation_details["period_number"] == period
        assert outcome.recurring_tracking.tracking_type == tracking_type
        assert outcome.recurring_tracking.period_number == period
        assert outcome.recurring_tracking.status == "pending"

    outcome = await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge())
    assert outcome.commission_due is False
    assert outcome.message == TRAILING_EXCEEDED_MESSAGE
    assert outcome.period_number == 6
    assert outcome.commission_records == []

    # The sixth charge still advances the subscription history
    assert crud_lifecycle.count_lifecycle_events(db_session, organization_id=TEST_ORG_ID, subscription_id=SUB) == 6
    history = crud_lifecycle.get_lifecycle_history(db_session, organization_id=TEST_ORG_ID, subscription_id=SUB)
    assert history[-1].commission_impact == "no_commission"
    assert db_session.query(CommissionRecordModel).count() == 5
    events = crud_event.get_events_for_subscription(db_session, organization_id=TEST_ORG_ID, subscription_id=SUB)
    assert [e.event_data["period_number"] for e in events] == [1, 2, 3, 4, 5]

@pytest.mark.asyncio
async def test_configured_trailing_multiplier_is_used(db_session: Session, catalog_product, product_assignment):
    create_rule(db_session, product_id="prod_crm", mrr_commission_type="trailing", mrr_duration_months=1,
                trailing_months=1, trailing_rate_multiplier=Decimal("0.2"))
    await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge())
    outcome = await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge())
    # 5% renewal * 0.2 = 1% of 100
    assert outcome.commission_records[0].commission_amount == Decimal("1.00")
    assert outcome.recurring_tracking.tracking_type == "trailing"

@pytest.mark.asyncio
async def test_first_payment_only_pays_once(db_session: Session, catalog_product, product_assignment):
    create_rule(db_session, product_id="prod_crm", mrr_commission_type="first_payment_only")
    first = await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge())
    second = await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge())
    assert first.commission_due is True
    assert second.commission_due is False
    assert second.message == FIRST_PAYMENT_ONLY_MESSAGE

@pytest.mark.asyncio
async def test_duration_window_closes(db_session: Session, catalog_product, product_assignment):
    create_rule(db_session, product_id="prod_crm", mrr_commission_type="duration", mrr_duration_months=2)
    outcomes = [await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge()) for _ in range(3)]
    assert [o.commission_due for o in outcomes] == [True, True, False]
    assert outcomes[2].message == DURATION_EXCEEDED_MESSAGE

@pytest.mark.asyncio
async def test_amount_is_rounded_half_up(db_session: Session, catalog_product, product_assignment):
    create_rule(db_session, product_id="prod_crm", initial_sale_rate=Decimal("7.5"))
    outcome = await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge(amount="99.99"))
    assert outcome.commission_records[0].commission_amount == Decimal("7.50")

@pytest.mark.asyncio
async def test_explicit_period_is_stored_on_tracking(db_session: Session, trailing_rule, product_assignment):
    outcome = await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge(
        period_start=date(2024, 3, 1), period_end=date(2024, 3, 31)
    ))
    assert outcome.recurring_tracking.period_start == date(2024, 3, 1)
    assert outcome.recurring_tracking.period_end == date(2024, 3, 31)
    assert outcome.event.event_data["period_start"] == "2024-03-01"

@pytest.mark.asyncio
async def test_default_period_spans_thirty_days(db_session: Session, trailing_rule, product_assignment):
    outcome = await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge())
    tracking = outcome.recurring_tracking
    assert (tracking.period_end - tracking.period_start).days == 30

@pytest.mark.asyncio
async def test_missing_rule_writes_nothing(db_session: Session, catalog_product, product_assignment):
    with pytest.raises(NoActiveRuleFound):
        await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge())
    assert crud_lifecycle.count_lifecycle_events(db_session, organization_id=TEST_ORG_ID, subscription_id=SUB) == 0

@pytest.mark.asyncio
async def test_missing_assignment_writes_nothing(db_session: Session, trailing_rule):
    with pytest.raises(NoAssignmentFound):
        await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge())
    assert crud_lifecycle.count_lifecycle_events(db_session, organization_id=TEST_ORG_ID, subscription_id=SUB) == 0
    assert db_session.query(CommissionEventModel).count() == 0

@pytest.mark.asyncio
async def test_missing_amount_is_invalid(db_session: Session, trailing_rule, product_assignment):
    with pytest.raises(InvalidRequest) as exc_info:
        await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=CommissionableEventRequest(
            subscription_id=SUB, product_id="prod_crm"
        ))
    assert exc_info.value.details["missing"] == ["amount"]

@pytest.mark.asyncio
async def test_rules_of_other_organizations_do_not_apply(db_session: Session, catalog_product):
    create_rule(db_session, product_id="prod_crm", organization_id="org_other")
    create_product_assignment(db_session, product_id="prod_crm")
    with pytest.raises(NoActiveRuleFound):
        await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=_charge())

@pytest.mark.asyncio
async def test_dispatch_needs_a_subscription_or_opportunity(db_session: Session):
    with pytest.raises(InvalidRequest):
        await record_commissionable_event(db_session, organization_id=TEST_ORG_ID, request=CommissionableEventRequest(
            product_id="prod_crm", amount=Decimal("10")
        ))

@pytest.mark.asyncio
async def test_dispatch_routes_subscription_charges(db_session: Session, trailing_rule, product_assignment):
    outcome = await record_commissionable_event(db_session, organization_id=TEST_ORG_ID, request=_charge())
    assert outcome.recurring_tracking is not None
    assert crud_recurring.get_tracking(
        db_session, organization_id=TEST_ORG_ID, tracking_id=outcome.recurring_tracking.id
    ).commission_record_id == outcome.commission_records[0].id


# Opportunity path

@pytest.mark.asyncio
async def test_opportunity_pays_every_live_assignment(db_session: Session):
    create_opportunity_assignment(db_session, opportunity_id="opp_1", user_id="rep_gross", base_rate=Decimal("10"))
    create_opportunity_assignment(db_session, opportunity_id="opp_1", user_id="rep_profit",
                                  commission_type="percentage_profit", base_rate=Decimal("20"))
    create_opportunity_assignment(db_session, opportunity_id="opp_1", user_id="rep_fixed",
                                  commission_type="fixed_amount", base_rate=Decimal("250"))

    outcome = await record_opportunity_event(
        db_session, organization_id=TEST_ORG_ID, request=_opportunity(profit_amount=Decimal("400"))
    )
    assert outcome.commission_due is True
    by_user = {r.user_id: r for r in outcome.commission_records}
    assert by_user["rep_gross"].commission_amount == Decimal("100.00")
    assert by_user["rep_profit"].commission_amount == Decimal("80.00")
    assert by_user["rep_profit"].base_amount == Decimal("400.00")
    assert by_user["rep_fixed"].commission_amount == Decimal("250.00")
    assert by_user["rep_fixed"].commission_rate == Decimal("100")
    assert by_user["rep_fixed"].calculation_details["basis"] == "fixed"
    # One event shared by all three records
    assert {r.event_id for r in outcome.commission_records} == {outcome.event.id}
    assert outcome.recurring_tracking is None

@pytest.mark.asyncio
async def test_profit_assignment_without_profit_falls_back_to_gross(db_session: Session):
    create_opportunity_assignment(db_session, opportunity_id="opp_1", commission_type="percentage_profit", base_rate=Decimal("20"))
    outcome = await record_opportunity_event(db_session, organization_id=TEST_ORG_ID, request=_opportunity())
    record = outcome.commission_records[0]
    assert record.commission_amount == Decimal("200.00")
    assert record.calculation_details["basis"] == "gross"

@pytest.mark.asyncio
@pytest.mark.parametrize("stage,paid", [("S1", False), ("S2", False), ("S3", True), ("S4", True)])
async def test_opportunity_stage_gate(db_session: Session, stage, paid):
    create_pipeline(db_session)
    create_opportunity_assignment(db_session, opportunity_id="opp_1", required_stage_id="S3", stage_requirement_type="reached")
    outcome = await record_opportunity_event(
        db_session, organization_id=TEST_ORG_ID, request=_opportunity(pipeline_stage_id=stage)
    )
    assert outcome.commission_due is paid
    if paid:
        assert len(outcome.commission_records) == 1
    else:
        assert outcome.message == STAGE_NOT_MET_MESSAGE
        assert db_session.query(CommissionEventModel).count() == 0

@pytest.mark.asyncio
async def test_opportunity_without_assignment_is_an_error(db_session: Session):
    with pytest.raises(NoAssignmentFound):
        await record_commissionable_event(db_session, organization_id=TEST_ORG_ID, request=_opportunity())


# Manual bonus

@pytest.mark.asyncio
async def test_manual_bonus_is_a_flat_record(db_session: Session, catalog_product, product_assignment):
    outcome = await award_manual_bonus(db_session, organization_id=TEST_ORG_ID, bonus_in=ManualBonusCreate(
        assignment_id=product_assignment.id, product_id="prod_crm", amount=Decimal("150"),
        event_type="challenge_bonus", reason="Q3 sales challenge",
    ))
    record = outcome.commission_records[0]
    assert record.commission_amount == Decimal("150.00")
    assert record.calculation_method == "manual_bonus"
    assert record.calculation_details == {"kind": "bonus", "version": 1, "reason": "Q3 sales challenge"}
    event = crud_event.get_event(db_session, organization_id=TEST_ORG_ID, event_id=record.event_id)
    assert event.event_source == "manual"
    assert event.event_type == "challenge_bonus"

@pytest.mark.asyncio
async def test_manual_bonus_needs_an_assignment(db_session: Session):
    with pytest.raises(NoAssignmentFound):
        await award_manual_bonus(db_session, organization_id=TEST_ORG_ID, bonus_in=ManualBonusCreate(
            assignment_id=123, product_id="prod_crm", amount=Decimal("10"),
        ))
    assert crud_commission.count_commission_records(db_session, organization_id=TEST_ORG_ID) == 0
