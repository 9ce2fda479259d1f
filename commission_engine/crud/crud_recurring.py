from sqlalchemy.orm import Session
from typing import Optional, List

from commission_engine.models.recurring import RecurringCommissionTracking
from commission_engine.models.commission import CommissionRecord
from commission_engine.schemas.recurring import RecurringTrackingCreate

def create_tracking(db: Session, *, obj_in: RecurringTrackingCreate, commit: bool = True) -> RecurringCommissionTracking:
    db_obj = RecurringCommissionTracking(**obj_in.model_dump())
    db.add(db_obj)
    if commit:
        db.commit()
        db.refresh(db_obj)
    else:
        db.flush()
    return db_obj

def get_tracking(db: Session, *, organization_id: str, tracking_id: int) -> Optional[RecurringCommissionTracking]:
    return (
        db.query(RecurringCommissionTracking)
        .filter(RecurringCommissionTracking.organization_id == organization_id, RecurringCommissionTracking.id == tracking_id)
        .first()
    )

def get_tracking_list(
    db: Session, *, organization_id: str, status: Optional[str] = None, user_id: Optional[str] = None,
    product_id: Optional[str] = None, subscription_id: Optional[str] = None, limit: int = 100
) -> List[RecurringCommissionTracking]:
    """
    Tracking rows, newest billing period first.
    user_id filters through the linked commission record's payee.
    """
    query = db.query(RecurringCommissionTracking).filter(RecurringCommissionTracking.organization_id == organization_id)
    if status:
        query = query.filter(RecurringCommissionTracking.status == status)
    if product_id:
        query = query.filter(RecurringCommissionTracking.product_id == product_id)
    if subscription_id:
        query = query.filter(RecurringCommissionTracking.subscription_id == subscription_id)
    if user_id:
        query = query.join(CommissionRecord, RecurringCommissionTracking.commission_record_id == CommissionRecord.id).filter(
            CommissionRecord.user_id == user_id
        )
    return query.order_by(RecurringCommissionTracking.period_start.desc(), RecurringCommissionTracking.id.desc()).limit(limit).all()
