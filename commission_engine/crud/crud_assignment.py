from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import Optional, List

from commission_engine.core.timeutils import utcnow
from commission_engine.models.assignment import CommissionAssignment
from commission_engine.schemas.assignment import CommissionAssignmentCreate

def _live(query):
    """Active, not disabled and not past its expiry date."""
    return query.filter(
        CommissionAssignment.is_active == True,
        CommissionAssignment.is_disabled == False,
        or_(CommissionAssignment.expiry_date.is_(None), CommissionAssignment.expiry_date > utcnow()),
    )

def create_assignment(db: Session, *, organization_id: str, obj_in: CommissionAssignmentCreate) -> CommissionAssignment:
    db_obj = CommissionAssignment(**obj_in.model_dump(), organization_id=organization_id)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def get_assignment(db: Session, *, organization_id: str, assignment_id: int) -> Optional[CommissionAssignment]:
    return (
        db.query(CommissionAssignment)
        .filter(CommissionAssignment.organization_id == organization_id, CommissionAssignment.id == assignment_id)
        .first()
    )

def get_active_assignment_for_opportunity_user(
    db: Session, *, organization_id: str, opportunity_id: str, user_id: str
) -> Optional[CommissionAssignment]:
    return (
        db.query(CommissionAssignment)
        .filter(
            CommissionAssignment.organization_id == organization_id,
            CommissionAssignment.opportunity_id == opportunity_id,
            CommissionAssignment.user_id == user_id,
            CommissionAssignment.is_active == True,
        )
        .first()
    )

def get_live_assignments_for_opportunity(db: Session, *, organization_id: str, opportunity_id: str) -> List[CommissionAssignment]:
    query = db.query(CommissionAssignment).filter(
        CommissionAssignment.organization_id == organization_id,
        CommissionAssignment.assignment_type == "opportunity",
        CommissionAssignment.opportunity_id == opportunity_id,
    )
    return _live(query).order_by(CommissionAssignment.id.asc()).all()

def get_live_product_assignment(db: Session, *, organization_id: str, product_id: str) -> Optional[CommissionAssignment]:
    """Most recently created live product-level assignment."""
    query = db.query(CommissionAssignment).filter(
        CommissionAssignment.organization_id == organization_id,
        CommissionAssignment.assignment_type == "product",
        CommissionAssignment.product_id == product_id,
    )
    return _live(query).order_by(CommissionAssignment.created_at.desc(), CommissionAssignment.id.desc()).first()

def get_assignments(
    db: Session, *, organization_id: str, opportunity_id: Optional[str] = None, product_id: Optional[str] = None,
    user_id: Optional[str] = None, include_inactive: bool = False, skip: int = 0, limit: int = 100
) -> List[CommissionAssignment]:
    query = db.query(CommissionAssignment).filter(CommissionAssignment.organization_id == organization_id)
    if opportunity_id:
        query = query.filter(CommissionAssignment.opportunity_id == opportunity_id)
    if product_id:
        query = query.filter(CommissionAssignment.product_id == product_id)
    if user_id:
        query = query.filter(CommissionAssignment.user_id == user_id)
    if not include_inactive:
        query = query.filter(CommissionAssignment.is_active == True)
    return query.order_by(CommissionAssignment.created_at.desc()).offset(skip).limit(limit).all()

def deactivate_assignment(db: Session, *, db_obj: CommissionAssignment) -> CommissionAssignment:
    """
    Assignments are never hard-deleted; existing commission records keep
    pointing at them.
    """
    db_obj.is_active = False
    db_obj.expiry_date = utcnow()
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj
