from sqlalchemy.orm import Session
from typing import Optional, List

from commission_engine.models.validation_audit import ValidationAudit

def create_audit(
    db: Session, *, organization_id: str, commission_record_id: int, validation_status: str,
    checks_performed: list, requires_approval: bool
) -> ValidationAudit:
    db_obj = ValidationAudit(
        organization_id=organization_id,
        commission_record_id=commission_record_id,
        validation_status=validation_status,
        checks_performed=checks_performed,
        requires_approval=requires_approval,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def get_latest_audit(
    db: Session, *, organization_id: str, commission_record_id: int, requires_approval: Optional[bool] = None
) -> Optional[ValidationAudit]:
    query = db.query(ValidationAudit).filter(
        ValidationAudit.organization_id == organization_id,
        ValidationAudit.commission_record_id == commission_record_id,
    )
    if requires_approval is not None:
        query = query.filter(ValidationAudit.requires_approval == requires_approval)
    return query.order_by(ValidationAudit.created_at.desc(), ValidationAudit.id.desc()).first()

def get_audit_history(db: Session, *, organization_id: str, commission_record_id: int) -> List[ValidationAudit]:
    """All validation runs for a record, newest first."""
    return (
        db.query(ValidationAudit)
        .filter(
            ValidationAudit.organization_id == organization_id,
            ValidationAudit.commission_record_id == commission_record_id,
        )
        .order_by(ValidationAudit.created_at.desc(), ValidationAudit.id.desc())
        .all()
    )
