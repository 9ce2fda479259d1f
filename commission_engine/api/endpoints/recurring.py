from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from commission_engine.core.commissions_calculator import record_subscription_event
from commission_engine.core.dependencies import Principal, get_current_principal
from commission_engine.core.recurring import list_recurring_tracking, update_recurring_tracking_status
from commission_engine.db.session import get_db
from commission_engine.schemas.event import CommissionableEventRequest, RecurringEventResponse
from commission_engine.schemas.recurring import RecurringCommissionTracking, TrackingList, TrackingStatusUpdate

router = APIRouter()

@router.get("/", response_model=TrackingList)
async def read_recurring_tracking(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    status: Optional[str] = Query(None, description="scheduled, pending, earned or paid"),
    user_id: Optional[str] = Query(None),
    product_id: Optional[str] = Query(None),
    subscription_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=200)
):
    """
    Recurring commission schedule, newest period first, with totals per status.
    """
    return list_recurring_tracking(
        db, organization_id=principal.organization_id, status=status, user_id=user_id,
        product_id=product_id, subscription_id=subscription_id, limit=limit,
    )

@router.post("/", response_model=RecurringEventResponse)
async def record_subscription_charge(
    event_in: CommissionableEventRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Subscription-only variant of POST /events/.
    """
    outcome = await record_subscription_event(db, organization_id=principal.organization_id, request=event_in)
    return {
        "message": outcome.message,
        "period_number": outcome.period_number,
        "event": outcome.event,
        "commission_record": outcome.commission_records[0] if outcome.commission_records else None,
        "tracking": outcome.recurring_tracking,
    }

@router.patch("/{tracking_id}", response_model=RecurringCommissionTracking)
async def update_tracking_status(
    tracking_id: int,
    status_in: TrackingStatusUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Move a tracking entry forward (scheduled -> pending -> earned -> paid).
    The linked commission record follows: earned approves it, paid marks it paid.
    """
    return await update_recurring_tracking_status(
        db, organization_id=principal.organization_id, tracking_id=tracking_id,
        status=status_in.status, earned_date=status_in.earned_date,
    )
