"""
Status changes and reporting for recurring commission tracking rows.

A tracking row is a projection of its commission record, so moving it to
earned or paid moves the record in the same transaction.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from commission_engine.core.approval import ensure_validation_allows_approval
from commission_engine.core.exceptions import PersistenceFailure, TrackingNotFound
from commission_engine.core.state import (
    TRACKING_TO_COMMISSION,
    CommissionStatus,
    TrackingStatus,
    check_commission_transition,
    check_tracking_transition,
)
from commission_engine.core.timeutils import utcnow
from commission_engine.crud import crud_recurring
from commission_engine.models.recurring import RecurringCommissionTracking

logger = logging.getLogger(__name__)


async def update_recurring_tracking_status(
    db: Session, *, organization_id: str, tracking_id: int, status: str, earned_date: Optional[date] = None
) -> RecurringCommissionTracking:
    tracking = crud_recurring.get_tracking(db, organization_id=organization_id, tracking_id=tracking_id)
    if tracking is None:
        raise TrackingNotFound("Recurring commission not found", {"tracking_id": tracking_id})

    new_status = check_tracking_transition(tracking.status, status)
    record = tracking.commission_record
    record_status = TRACKING_TO_COMMISSION.get(new_status)
    if record_status is not None:
        # Validate both transitions before touching anything
        check_commission_transition(record.status, record_status.value)
        if record_status == CommissionStatus.APPROVED:
            ensure_validation_allows_approval(db, record)

    now = utcnow()
    tracking.status = new_status.value
    if new_status == TrackingStatus.EARNED:
        tracking.earned_date = earned_date or now.date()

    if record_status == CommissionStatus.APPROVED:
        record.status = record_status.value
        record.approved_at = now
        record.is_due_for_payout = True
    elif record_status == CommissionStatus.PAID:
        if tracking.earned_date is None:
            tracking.earned_date = earned_date or now.date()
        record.status = record_status.value
        record.paid_at = now
        record.is_due_for_payout = False

    try:
        db.add(tracking)
        db.add(record)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to update recurring tracking {tracking_id}", exc_info=True)
        raise PersistenceFailure("Failed to update recurring tracking", {"error": str(exc)}) from exc
    db.refresh(tracking)
    logger.info(f"Recurring tracking {tracking.id} -> {tracking.status}; commission {record.id} -> {record.status}")
    return tracking


def list_recurring_tracking(
    db: Session, *, organization_id: str, status: Optional[str] = None, user_id: Optional[str] = None,
    product_id: Optional[str] = None, subscription_id: Optional[str] = None, limit: int = 100
) -> dict:
    rows = crud_recurring.get_tracking_list(
        db, organization_id=organization_id, status=status, user_id=user_id,
        product_id=product_id, subscription_id=subscription_id, limit=limit,
    )
    totals = {value.value: Decimal("0") for value in TrackingStatus}
    upcoming_count = 0
    subscriptions = set()
    for row in rows:
        subscriptions.add(row.subscription_id)
        totals[row.status] = totals.get(row.status, Decimal("0")) + Decimal(row.commission_amount)
        if row.status == TrackingStatus.SCHEDULED.value:
            upcoming_count += 1

    return {
        "tracking_records": rows,
        "stats": {
            "total_scheduled": totals[TrackingStatus.SCHEDULED.value],
            "total_pending": totals[TrackingStatus.PENDING.value],
            "total_earned": totals[TrackingStatus.EARNED.value],
            "total_paid": totals[TrackingStatus.PAID.value],
            "upcoming_count": upcoming_count,
            "active_subscriptions": len(subscriptions),
        },
    }
