from sqlalchemy.orm import Session
from typing import Optional, List

from commission_engine.models.event import CommissionEvent
from commission_engine.schemas.event import CommissionEventCreate

# Events are immutable; no update or delete.

def create_event(db: Session, *, obj_in: CommissionEventCreate, commit: bool = True) -> CommissionEvent:
    data = obj_in.model_dump(exclude_none=True)
    db_obj = CommissionEvent(**data)
    db.add(db_obj)
    if commit:
        db.commit()
        db.refresh(db_obj)
    else:
        db.flush()
    return db_obj

def get_event(db: Session, *, organization_id: str, event_id: int) -> Optional[CommissionEvent]:
    return (
        db.query(CommissionEvent)
        .filter(CommissionEvent.organization_id == organization_id, CommissionEvent.id == event_id)
        .first()
    )

def get_events_for_subscription(db: Session, *, organization_id: str, subscription_id: str) -> List[CommissionEvent]:
    return (
        db.query(CommissionEvent)
        .filter(CommissionEvent.organization_id == organization_id, CommissionEvent.subscription_id == subscription_id)
        .order_by(CommissionEvent.event_date.asc(), CommissionEvent.id.asc())
        .all()
    )
