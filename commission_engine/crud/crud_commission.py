from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from typing import Optional, List

from commission_engine.models.commission import CommissionRecord
from commission_engine.schemas.commission import CommissionRecordCreate

def create_commission_record(db: Session, *, obj_in: CommissionRecordCreate, commit: bool = True) -> CommissionRecord:
    """
    Create a new commission record.
    calculation_details is stored as plain JSON; the schema keeps it typed.
    """
    data = obj_in.model_dump(exclude={"calculation_details"})
    if obj_in.calculation_details is not None:
        data["calculation_details"] = obj_in.calculation_details.model_dump(mode="json")
    db_obj = CommissionRecord(**data)
    db.add(db_obj)
    if commit:
        db.commit()
        db.refresh(db_obj)
    else:
        db.flush()
    return db_obj

def get_commission_record(db: Session, *, organization_id: str, record_id: int) -> Optional[CommissionRecord]:
    """
    Get a single commission record with its event and assignment eagerly loaded.
    """
    return (
        db.query(CommissionRecord)
        .options(
            joinedload(CommissionRecord.event),
            joinedload(CommissionRecord.assignment),
            joinedload(CommissionRecord.product_rule),
        )
        .filter(CommissionRecord.organization_id == organization_id, CommissionRecord.id == record_id)
        .first()
    )

def get_commission_records(
    db: Session, *, organization_id: str, user_id: Optional[str] = None, status: Optional[str] = None,
    event_id: Optional[int] = None, skip: int = 0, limit: int = 100
) -> List[CommissionRecord]:
    query = db.query(CommissionRecord).filter(CommissionRecord.organization_id == organization_id)
    if user_id:
        query = query.filter(CommissionRecord.user_id == user_id)
    if status:
        query = query.filter(CommissionRecord.status == status)
    if event_id is not None:
        query = query.filter(CommissionRecord.event_id == event_id)
    return query.order_by(CommissionRecord.created_at.desc(), CommissionRecord.id.desc()).offset(skip).limit(limit).all()

def count_commission_records(
    db: Session, *, organization_id: str, user_id: Optional[str] = None, status: Optional[str] = None
) -> int:
    query = db.query(func.count(CommissionRecord.id)).filter(CommissionRecord.organization_id == organization_id)
    if user_id:
        query = query.filter(CommissionRecord.user_id == user_id)
    if status:
        query = query.filter(CommissionRecord.status == status)
    return query.scalar()

def get_other_records_for_event(
    db: Session, *, organization_id: str, event_id: int, exclude_record_id: int
) -> List[CommissionRecord]:
    """Records sharing an event with the given one. Used by the duplicate check."""
    return (
        db.query(CommissionRecord)
        .filter(
            CommissionRecord.organization_id == organization_id,
            CommissionRecord.event_id == event_id,
            CommissionRecord.id != exclude_record_id,
        )
        .all()
    )
