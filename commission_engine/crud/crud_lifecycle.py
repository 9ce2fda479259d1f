from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List

from commission_engine.models.lifecycle import SubscriptionLifecycleEvent

# Append-only: no update or delete functions exist for this table.

def append_lifecycle_event(db: Session, *, obj_in: dict, commit: bool = True) -> SubscriptionLifecycleEvent:
    db_obj = SubscriptionLifecycleEvent(**obj_in)
    db.add(db_obj)
    if commit:
        db.commit()
        db.refresh(db_obj)
    else:
        db.flush()
    return db_obj

def count_lifecycle_events(db: Session, *, organization_id: str, subscription_id: str, event_type: str = None) -> int:
    query = db.query(func.count(SubscriptionLifecycleEvent.id)).filter(
        SubscriptionLifecycleEvent.organization_id == organization_id,
        SubscriptionLifecycleEvent.subscription_id == subscription_id,
    )
    if event_type:
        query = query.filter(SubscriptionLifecycleEvent.event_type == event_type)
    return query.scalar()

def get_lifecycle_history(db: Session, *, organization_id: str, subscription_id: str) -> List[SubscriptionLifecycleEvent]:
    return (
        db.query(SubscriptionLifecycleEvent)
        .filter(
            SubscriptionLifecycleEvent.organization_id == organization_id,
            SubscriptionLifecycleEvent.subscription_id == subscription_id,
        )
        .order_by(SubscriptionLifecycleEvent.period_number.asc())
        .all()
    )
