"""
Human decisions on validated commissions: approval and validation override.

Neither action is idempotent; calling twice overwrites the previous stamp.
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from commission_engine.core.exceptions import CommissionRecordNotFound, InvalidRequest, NotFound, PersistenceFailure
from commission_engine.core.state import CommissionStatus, ValidationStatus, check_commission_transition
from commission_engine.core.timeutils import utcnow
from commission_engine.crud import crud_commission, crud_validation_audit

logger = logging.getLogger(__name__)


def _get_record(db: Session, organization_id: str, commission_record_id: int):
    record = crud_commission.get_commission_record(db, organization_id=organization_id, record_id=commission_record_id)
    if record is None:
        raise CommissionRecordNotFound("Commission record not found", {"commission_record_id": commission_record_id})
    return record


def ensure_validation_allows_approval(db: Session, record) -> None:
    """A record whose latest validation run failed needs an override before it can be approved."""
    audit = crud_validation_audit.get_latest_audit(db, organization_id=record.organization_id, commission_record_id=record.id)
    if audit is not None and audit.validation_status == ValidationStatus.FAILED.value:
        raise InvalidRequest(
            "Commission failed validation; override it before approving",
            {"commission_record_id": record.id, "validation_audit_id": audit.id},
        )


def _commit(db: Session, what: str):
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to persist {what}", exc_info=True)
        raise PersistenceFailure(f"Failed to persist {what}", {"error": str(exc)}) from exc


async def approve_commission(
    db: Session, *, organization_id: str, commission_record_id: int, approver_id: str, notes: Optional[str] = None
) -> bool:
    """
    Moves the record to approved and stamps the latest audit row that asked
    for approval. A paid record cannot be approved again, and a failed
    validation must be overridden first.
    """
    if not approver_id:
        raise InvalidRequest("approver_id is required", {"missing": ["approver_id"]})
    record = _get_record(db, organization_id, commission_record_id)
    check_commission_transition(record.status, CommissionStatus.APPROVED.value)
    ensure_validation_allows_approval(db, record)

    now = utcnow()
    record.status = CommissionStatus.APPROVED.value
    record.approved_by = approver_id
    record.approved_at = now
    record.approval_notes = notes
    record.is_due_for_payout = True
    db.add(record)

    audit = crud_validation_audit.get_latest_audit(
        db, organization_id=organization_id, commission_record_id=record.id, requires_approval=True
    )
    if audit is not None:
        audit.approval_status = "approved"
        audit.approved_by = approver_id
        audit.approval_date = now
        audit.approval_notes = notes
        db.add(audit)

    _commit(db, "commission approval")
    logger.info(f"Commission {record.id} approved by {approver_id}")
    return True


async def override_validation(
    db: Session, *, organization_id: str, commission_record_id: int, override_by_id: str, reason: str
) -> bool:
    """
    Marks the latest validation run as overridden. The record's own status is
    left alone; approval is still a separate step.
    """
    if not override_by_id:
        raise InvalidRequest("override_by_id is required", {"missing": ["override_by_id"]})
    if not reason or not reason.strip():
        raise InvalidRequest("An override reason is required", {"missing": ["reason"]})
    record = _get_record(db, organization_id, commission_record_id)

    audit = crud_validation_audit.get_latest_audit(db, organization_id=organization_id, commission_record_id=record.id)
    if audit is None:
        raise NotFound("Commission has not been validated yet", {"commission_record_id": record.id})

    previous = audit.validation_status
    audit.validation_status = ValidationStatus.OVERRIDE.value
    audit.override_by = override_by_id
    audit.override_reason = reason.strip()
    audit.override_at = utcnow()
    db.add(audit)
    _commit(db, "validation override")
    logger.warning(f"Validation of commission {record.id} ({previous}) overridden by {override_by_id}: {audit.override_reason}")
    return True
