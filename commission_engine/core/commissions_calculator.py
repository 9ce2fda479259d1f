import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from commission_engine.core import lifecycle
from commission_engine.core.assignment_resolver import (
    resolve_opportunity_assignments,
    resolve_subscription_assignment,
)
from commission_engine.core.config import DEFAULT_PERIOD_DAYS
from commission_engine.core.exceptions import (
    InvalidRequest,
    NoActiveRuleFound,
    NoAssignmentFound,
    PersistenceFailure,
)
from commission_engine.core.tier_calculator import NoCommissionDue, commission_amount, determine_tier, round_money
from commission_engine.core.timeutils import default_period, utcnow
from commission_engine.crud import crud_assignment, crud_commission, crud_event, crud_product_rule, crud_recurring
from commission_engine.models.commission import CommissionRecord
from commission_engine.models.event import CommissionEvent
from commission_engine.models.recurring import RecurringCommissionTracking
from commission_engine.schemas.commission import (
    BonusCalculation,
    CommissionRecordCreate,
    ManualBonusCreate,
    OpportunityCalculation,
    SubscriptionCalculation,
)
from commission_engine.schemas.event import CommissionableEventRequest, CommissionEventCreate
from commission_engine.schemas.recurring import RecurringTrackingCreate

logger = logging.getLogger(__name__)

STAGE_NOT_MET_MESSAGE = "Stage requirement not met"


@dataclass
class EventOutcome:
    """What one commissionable event produced. commission_due=False is a success with nothing written
    apart from the subscription lifecycle entry."""
    commission_due: bool
    message: Optional[str] = None
    period_number: Optional[int] = None
    event: Optional[CommissionEvent] = None
    commission_records: List[CommissionRecord] = field(default_factory=list)
    recurring_tracking: Optional[RecurringCommissionTracking] = None


def _require(request: CommissionableEventRequest, *names: str):
    missing = [name for name in names if getattr(request, name) in (None, "")]
    if missing:
        raise InvalidRequest(f"Missing required fields: {', '.join(missing)}", {"missing": missing})


def _commit_or_fail(db: Session, what: str):
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to persist {what}; transaction rolled back", exc_info=True)
        raise PersistenceFailure(f"Failed to persist {what}", {"error": str(exc)}) from exc


async def record_commissionable_event(
    db: Session, *, organization_id: str, request: CommissionableEventRequest
) -> EventOutcome:
    """
    Entry point for billing and CRM collaborators. Subscription charges go
    through the recurring tiers; anything carrying an opportunity_id and no
    subscription_id is paid per opportunity assignment.
    """
    if request.subscription_id:
        return await record_subscription_event(db, organization_id=organization_id, request=request)
    if request.opportunity_id:
        return await record_opportunity_event(db, organization_id=organization_id, request=request)
    raise InvalidRequest(
        "Either subscription_id or opportunity_id is required", {"missing": ["subscription_id", "opportunity_id"]}
    )


async def record_subscription_event(
    db: Session, *, organization_id: str, request: CommissionableEventRequest
) -> EventOutcome:
    _require(request, "subscription_id", "product_id", "amount")
    logger.info(f"Processing subscription charge for subscription {request.subscription_id}, product {request.product_id}")

    rule = crud_product_rule.get_active_rule_for_product(db, organization_id=organization_id, product_id=request.product_id)
    if rule is None:
        raise NoActiveRuleFound("No active commission rule found for product", {"product_id": request.product_id})

    resolved = resolve_subscription_assignment(
        db, organization_id=organization_id, product_id=request.product_id, assignment_id=request.assignment_id
    )

    # Read the period before this charge's lifecycle entry exists
    billing_period = lifecycle.next_billing_period(
        db, organization_id=organization_id, subscription_id=request.subscription_id
    )
    tier = determine_tier(rule, billing_period.period_number)
    amount = round_money(request.amount)

    if isinstance(tier, NoCommissionDue):
        lifecycle.record_lifecycle_event(
            db, organization_id=organization_id, subscription_id=request.subscription_id,
            billing_period=billing_period, mrr_amount=amount, commission_impact="no_commission",
            product_id=request.product_id, contact_id=request.contact_id, commit=False,
        )
        _commit_or_fail(db, "subscription lifecycle event")
        logger.info(
            f"Subscription {request.subscription_id} period {billing_period.period_number}: {tier.reason}"
        )
        return EventOutcome(commission_due=False, message=tier.reason, period_number=billing_period.period_number)

    assignment = resolved.assignment
    period_start, period_end = request.period_start, request.period_end
    if period_start is None or period_end is None:
        default_start, default_end = default_period(period_start, days=DEFAULT_PERIOD_DAYS)
        period_start, period_end = period_start or default_start, period_end or default_end

    try:
        event = crud_event.create_event(db, obj_in=CommissionEventCreate(
            organization_id=organization_id,
            event_source="subscription",
            event_type=request.event_type,
            product_id=request.product_id,
            subscription_id=request.subscription_id,
            contact_id=request.contact_id,
            event_amount=amount,
            event_date=request.event_date or utcnow(),
            event_data={
                "period_number": billing_period.period_number,
                "period_start": period_start.isoformat(),
                "period_end": period_end.isoformat(),
            },
        ), commit=False)

        record = crud_commission.create_commission_record(db, obj_in=CommissionRecordCreate(
            organization_id=organization_id,
            event_id=event.id,
            assignment_id=assignment.id,
            product_rule_id=rule.id,
            user_id=assignment.user_id,
            user_name=assignment.user_name,
            user_email=assignment.user_email,
            base_amount=amount,
            commission_rate=tier.rate,
            commission_amount=commission_amount(amount, tier.rate),
            calculation_method=f"{tier.tracking_type}_subscription",
            calculation_details=SubscriptionCalculation(
                period_number=billing_period.period_number,
                tracking_type=tier.tracking_type,
                product_rule_id=rule.id,
                mrr_commission_type=rule.mrr_commission_type,
            ),
        ), commit=False)

        tracking = crud_recurring.create_tracking(db, obj_in=RecurringTrackingCreate(
            organization_id=organization_id,
            commission_record_id=record.id,
            subscription_id=request.subscription_id,
            product_id=request.product_id,
            tracking_type=tier.tracking_type,
            period_start=period_start,
            period_end=period_end,
            period_number=billing_period.period_number,
            base_amount=amount,
            commission_rate=tier.rate,
            commission_amount=record.commission_amount,
            status="pending",
        ), commit=False)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to write commission for subscription {request.subscription_id}", exc_info=True)
        raise PersistenceFailure("Failed to create commission records", {"error": str(exc)}) from exc

    lifecycle.record_lifecycle_event(
        db, organization_id=organization_id, subscription_id=request.subscription_id,
        billing_period=billing_period, mrr_amount=amount, commission_impact="new_commission",
        product_id=request.product_id, contact_id=request.contact_id, commit=False,
    )
    _commit_or_fail(db, "subscription commission")
    for obj in (event, record, tracking):
        db.refresh(obj)

    logger.info(
        f"Created {tier.tracking_type} commission {record.id} for user {record.user_id}: "
        f"{record.commission_amount} ({tier.rate}% of {amount}), period {billing_period.period_number}"
    )
    return EventOutcome(
        commission_due=True,
        period_number=billing_period.period_number,
        event=event,
        commission_records=[record],
        recurring_tracking=tracking,
    )


def _opportunity_commission(assignment, amount: Decimal, profit_amount: Optional[Decimal]):
    """(base_amount, rate, commission_amount, basis) for one opportunity assignment."""
    rate = Decimal(assignment.base_rate)
    if assignment.commission_type == "fixed_amount":
        flat = round_money(rate)
        return flat, Decimal(100), flat, "fixed"
    if assignment.commission_type == "percentage_profit" and profit_amount is not None:
        base = round_money(profit_amount)
        return base, rate, commission_amount(base, rate), "profit"
    return amount, rate, commission_amount(amount, rate), "gross"


async def record_opportunity_event(
    db: Session, *, organization_id: str, request: CommissionableEventRequest
) -> EventOutcome:
    _require(request, "opportunity_id", "product_id", "amount")
    logger.info(f"Processing opportunity event for opportunity {request.opportunity_id} at stage {request.pipeline_stage_id}")

    resolved = resolve_opportunity_assignments(
        db, organization_id=organization_id, opportunity_id=request.opportunity_id,
        current_stage_id=request.pipeline_stage_id,
    )
    if not resolved:
        logger.info(f"Opportunity {request.opportunity_id}: no assignment passed its stage requirement")
        return EventOutcome(commission_due=False, message=STAGE_NOT_MET_MESSAGE)

    amount = round_money(request.amount)
    records = []
    try:
        event = crud_event.create_event(db, obj_in=CommissionEventCreate(
            organization_id=organization_id,
            event_source="opportunity",
            event_type=request.event_type,
            product_id=request.product_id,
            opportunity_id=request.opportunity_id,
            contact_id=request.contact_id,
            event_amount=amount,
            event_date=request.event_date or utcnow(),
            event_data={"pipeline_stage_id": request.pipeline_stage_id},
        ), commit=False)

        for item in resolved:
            assignment = item.assignment
            base, rate, value, basis = _opportunity_commission(assignment, amount, request.profit_amount)
            records.append(crud_commission.create_commission_record(db, obj_in=CommissionRecordCreate(
                organization_id=organization_id,
                event_id=event.id,
                assignment_id=assignment.id,
                user_id=assignment.user_id,
                user_name=assignment.user_name,
                user_email=assignment.user_email,
                base_amount=base,
                commission_rate=rate,
                commission_amount=value,
                calculation_method=assignment.commission_type,
                calculation_details=OpportunityCalculation(
                    commission_type=assignment.commission_type,
                    base_rate=item.base_rate,
                    basis=basis,
                    pipeline_stage_id=request.pipeline_stage_id,
                    profit_amount=request.profit_amount,
                ),
            ), commit=False))
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to write commissions for opportunity {request.opportunity_id}", exc_info=True)
        raise PersistenceFailure("Failed to create commission records", {"error": str(exc)}) from exc

    _commit_or_fail(db, "opportunity commissions")
    db.refresh(event)
    for record in records:
        db.refresh(record)
        logger.info(f"Created {record.calculation_method} commission {record.id} for user {record.user_id}: {record.commission_amount}")
    return EventOutcome(commission_due=True, event=event, commission_records=records)


async def award_manual_bonus(db: Session, *, organization_id: str, bonus_in: ManualBonusCreate) -> EventOutcome:
    """A flat bonus for an assignment's payee, e.g. a sales challenge prize."""
    assignment = crud_assignment.get_assignment(db, organization_id=organization_id, assignment_id=bonus_in.assignment_id)
    if assignment is None:
        raise NoAssignmentFound("Commission assignment not found", {"assignment_id": bonus_in.assignment_id})

    amount = round_money(bonus_in.amount)
    try:
        event = crud_event.create_event(db, obj_in=CommissionEventCreate(
            organization_id=organization_id,
            event_source="manual",
            event_type=bonus_in.event_type,
            product_id=bonus_in.product_id,
            contact_id=bonus_in.contact_id,
            event_amount=amount,
            event_date=utcnow(),
            event_data={"reason": bonus_in.reason} if bonus_in.reason else None,
        ), commit=False)
        record = crud_commission.create_commission_record(db, obj_in=CommissionRecordCreate(
            organization_id=organization_id,
            event_id=event.id,
            assignment_id=assignment.id,
            user_id=assignment.user_id,
            user_name=assignment.user_name,
            user_email=assignment.user_email,
            base_amount=amount,
            commission_rate=Decimal(100),
            commission_amount=amount,
            calculation_method="manual_bonus",
            calculation_details=BonusCalculation(reason=bonus_in.reason),
        ), commit=False)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to write manual bonus for assignment {assignment.id}", exc_info=True)
        raise PersistenceFailure("Failed to create bonus", {"error": str(exc)}) from exc

    _commit_or_fail(db, "manual bonus")
    db.refresh(event)
    db.refresh(record)
    logger.info(f"Awarded manual bonus {record.id} of {amount} to user {record.user_id}")
    return EventOutcome(commission_due=True, event=event, commission_records=[record])
