"""
Subscription lifecycle tracking.

The lifecycle table is the only source of period numbers. They are recounted
from the full history on every call; there is no cached counter.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from commission_engine.core.exceptions import Conflict
from commission_engine.core.timeutils import utcnow
from commission_engine.crud import crud_lifecycle
from commission_engine.models.lifecycle import SubscriptionLifecycleEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BillingPeriod:
    period_number: int
    lifecycle_event_type: str  # created, renewed


def current_period_number(db: Session, *, organization_id: str, subscription_id: str) -> int:
    renewals = crud_lifecycle.count_lifecycle_events(
        db, organization_id=organization_id, subscription_id=subscription_id, event_type="renewed"
    )
    return renewals + 1


def next_billing_period(db: Session, *, organization_id: str, subscription_id: str) -> BillingPeriod:
    """
    The period an incoming charge pays for, read before its lifecycle event is
    appended. A subscription with no history is in period 1.
    """
    history_size = crud_lifecycle.count_lifecycle_events(
        db, organization_id=organization_id, subscription_id=subscription_id
    )
    if history_size == 0:
        return BillingPeriod(period_number=1, lifecycle_event_type="created")
    period = current_period_number(db, organization_id=organization_id, subscription_id=subscription_id)
    return BillingPeriod(period_number=period + 1, lifecycle_event_type="renewed")


def record_lifecycle_event(
    db: Session, *, organization_id: str, subscription_id: str, billing_period: BillingPeriod,
    mrr_amount: Decimal, commission_impact: str, product_id: Optional[str] = None,
    contact_id: Optional[str] = None, commit: bool = True
) -> SubscriptionLifecycleEvent:
    """
    Append one lifecycle event. A concurrent writer that already recorded the
    same period trips the unique constraint and surfaces as a Conflict.
    """
    try:
        lifecycle_event = crud_lifecycle.append_lifecycle_event(db, obj_in={
            "organization_id": organization_id,
            "subscription_id": subscription_id,
            "product_id": product_id,
            "contact_id": contact_id,
            "event_type": billing_period.lifecycle_event_type,
            "period_number": billing_period.period_number,
            "event_date": utcnow(),
            "mrr_amount": mrr_amount,
            "commission_impact": commission_impact,
        }, commit=commit)
    except IntegrityError as exc:
        db.rollback()
        logger.warning(
            f"Period {billing_period.period_number} of subscription {subscription_id} was already recorded by another request"
        )
        raise Conflict(
            "Billing period already recorded for this subscription",
            {"subscription_id": subscription_id, "period_number": billing_period.period_number},
        ) from exc
    logger.info(
        f"Subscription {subscription_id}: recorded '{billing_period.lifecycle_event_type}' for period {billing_period.period_number} ({commission_impact})"
    )
    return lifecycle_event


def lifecycle_history(db: Session, *, organization_id: str, subscription_id: str) -> List[SubscriptionLifecycleEvent]:
    return crud_lifecycle.get_lifecycle_history(db, organization_id=organization_id, subscription_id=subscription_id)
