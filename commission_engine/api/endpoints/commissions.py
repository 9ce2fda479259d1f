from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from commission_engine.core import approval, validator
from commission_engine.core.commissions_calculator import award_manual_bonus
from commission_engine.core.dependencies import Principal, get_current_principal
from commission_engine.core.exceptions import CommissionRecordNotFound
from commission_engine.crud import crud_commission
from commission_engine.db.session import get_db
from commission_engine.schemas.commission import (
    ActionResult,
    ApprovalRequest,
    CommissionList,
    CommissionRecord,
    ManualBonusCreate,
    OverrideRequest,
)
from commission_engine.schemas.event import RecordEventResult
from commission_engine.schemas.validation import ValidationAudit, ValidationResult

router = APIRouter()

@router.get("/", response_model=CommissionList)
async def read_commissions(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    user_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="pending, approved or paid"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    records = crud_commission.get_commission_records(
        db, organization_id=principal.organization_id, user_id=user_id, status=status, skip=skip, limit=limit
    )
    total = crud_commission.count_commission_records(db, organization_id=principal.organization_id, user_id=user_id, status=status)
    return {"commissions": records, "total": total}

@router.post("/bonuses", response_model=RecordEventResult, status_code=201)
async def create_manual_bonus(
    bonus_in: ManualBonusCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Award a flat bonus to the payee of an assignment.
    """
    outcome = await award_manual_bonus(db, organization_id=principal.organization_id, bonus_in=bonus_in)
    return RecordEventResult.model_validate(outcome, from_attributes=True)

@router.get("/{commission_id}", response_model=CommissionRecord)
async def read_commission(
    commission_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    record = crud_commission.get_commission_record(db, organization_id=principal.organization_id, record_id=commission_id)
    if record is None:
        raise CommissionRecordNotFound("Commission record not found", {"commission_record_id": commission_id})
    return record

@router.post("/{commission_id}/validate", response_model=ValidationResult)
async def validate_commission(
    commission_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Run the validation checks. A failed verdict is still a 200 response;
    check can_proceed.
    """
    return await validator.validate_commission(
        db, organization_id=principal.organization_id, commission_record_id=commission_id
    )

@router.get("/{commission_id}/validations", response_model=List[ValidationAudit])
async def read_validation_history(
    commission_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    return validator.validation_history(db, organization_id=principal.organization_id, commission_record_id=commission_id)

@router.post("/{commission_id}/approve", response_model=ActionResult)
async def approve_commission(
    commission_id: int,
    approval_in: ApprovalRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Approve a commission. The approver is the authenticated user.
    """
    success = await approval.approve_commission(
        db, organization_id=principal.organization_id, commission_record_id=commission_id,
        approver_id=principal.user_id, notes=approval_in.notes,
    )
    return {"success": success}

@router.post("/{commission_id}/override", response_model=ActionResult)
async def override_validation(
    commission_id: int,
    override_in: OverrideRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Override the latest validation verdict. Does not approve the commission.
    """
    success = await approval.override_validation(
        db, organization_id=principal.organization_id, commission_record_id=commission_id,
        override_by_id=principal.user_id, reason=override_in.reason,
    )
    return {"success": success}
