from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from commission_engine.core.assignment_resolver import create_assignment
from commission_engine.core.dependencies import Principal, get_current_principal
from commission_engine.core.exceptions import NoAssignmentFound
from commission_engine.crud import crud_assignment
from commission_engine.db.session import get_db
from commission_engine.schemas.assignment import CommissionAssignment, CommissionAssignmentCreate

router = APIRouter()

@router.get("/", response_model=List[CommissionAssignment])
async def read_assignments(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    opportunity_id: Optional[str] = Query(None),
    product_id: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    return crud_assignment.get_assignments(
        db, organization_id=principal.organization_id, opportunity_id=opportunity_id, product_id=product_id,
        user_id=user_id, include_inactive=include_inactive, skip=skip, limit=limit,
    )

@router.post("/", response_model=CommissionAssignment, status_code=201)
async def create_commission_assignment(
    assignment_in: CommissionAssignmentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Bind a payee to an opportunity or a product.
    A second active assignment for the same opportunity and user is a 409.
    """
    return create_assignment(db, organization_id=principal.organization_id, obj_in=assignment_in)

@router.delete("/{assignment_id}", response_model=CommissionAssignment)
async def delete_commission_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Deactivate an assignment and expire it now. Existing commissions keep their link.
    """
    assignment = crud_assignment.get_assignment(db, organization_id=principal.organization_id, assignment_id=assignment_id)
    if assignment is None:
        raise NoAssignmentFound("Commission assignment not found", {"assignment_id": assignment_id})
    return crud_assignment.deactivate_assignment(db, db_obj=assignment)
