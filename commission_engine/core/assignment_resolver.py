"""
Maps a commission event to the assignments that should be paid for it.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from commission_engine.core.exceptions import Conflict, NoAssignmentFound
from commission_engine.crud import crud_assignment, crud_catalog
from commission_engine.models.assignment import CommissionAssignment
from commission_engine.schemas.assignment import CommissionAssignmentCreate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedAssignment:
    assignment: CommissionAssignment
    base_rate: Decimal


def stage_requirement_met(
    db: Session, *, organization_id: str, assignment: CommissionAssignment, current_stage_id: Optional[str]
) -> bool:
    """
    'exact' needs the opportunity to sit on the required stage. 'reached' needs
    its stage to be at or past the required one within the pipeline.
    """
    if not assignment.required_stage_id:
        return True
    if not current_stage_id:
        return False
    if assignment.stage_requirement_type == "exact":
        return current_stage_id == assignment.required_stage_id

    required = crud_catalog.get_stage(db, organization_id=organization_id, stage_id=assignment.required_stage_id)
    current = crud_catalog.get_stage(db, organization_id=organization_id, stage_id=current_stage_id)
    if required is None or current is None:
        logger.warning(
            f"Assignment {assignment.id}: unknown stage (required={assignment.required_stage_id}, current={current_stage_id}), skipping"
        )
        return False
    if required.pipeline_id != current.pipeline_id:
        return False
    return current.position >= required.position


def resolve_opportunity_assignments(
    db: Session, *, organization_id: str, opportunity_id: str, current_stage_id: Optional[str] = None
) -> List[ResolvedAssignment]:
    """
    Live assignments for the opportunity that pass their stage gate.
    Raises NoAssignmentFound only when the opportunity has no live assignment at
    all; gated-out assignments are skipped and may leave the list empty.
    """
    assignments = crud_assignment.get_live_assignments_for_opportunity(
        db, organization_id=organization_id, opportunity_id=opportunity_id
    )
    if not assignments:
        raise NoAssignmentFound(
            "No active commission assignment for this opportunity", {"opportunity_id": opportunity_id}
        )

    resolved = []
    for assignment in assignments:
        if stage_requirement_met(db, organization_id=organization_id, assignment=assignment, current_stage_id=current_stage_id):
            resolved.append(ResolvedAssignment(assignment=assignment, base_rate=Decimal(assignment.base_rate)))
        else:
            logger.info(
                f"Assignment {assignment.id} for opportunity {opportunity_id} skipped: stage requirement "
                f"'{assignment.stage_requirement_type}' {assignment.required_stage_id} not met at {current_stage_id}"
            )
    return resolved


def resolve_subscription_assignment(
    db: Session, *, organization_id: str, product_id: str, assignment_id: Optional[int] = None
) -> ResolvedAssignment:
    if assignment_id is not None:
        assignment = crud_assignment.get_assignment(db, organization_id=organization_id, assignment_id=assignment_id)
        if assignment is None:
            raise NoAssignmentFound("Commission assignment not found", {"assignment_id": assignment_id})
    else:
        assignment = crud_assignment.get_live_product_assignment(db, organization_id=organization_id, product_id=product_id)
        if assignment is None:
            raise NoAssignmentFound("No commission assignment found for this product", {"product_id": product_id})
    return ResolvedAssignment(assignment=assignment, base_rate=Decimal(assignment.base_rate))


def create_assignment(db: Session, *, organization_id: str, obj_in: CommissionAssignmentCreate) -> CommissionAssignment:
    """
    Opportunity assignments are exclusive per payee. The read below gives a
    readable error; the partial unique index catches the concurrent case.
    """
    if obj_in.assignment_type == "opportunity":
        existing = crud_assignment.get_active_assignment_for_opportunity_user(
            db, organization_id=organization_id, opportunity_id=obj_in.opportunity_id, user_id=obj_in.user_id
        )
        if existing:
            raise Conflict(
                "User already has an active commission assignment for this opportunity",
                {"existing_assignment_id": existing.id, "opportunity_id": obj_in.opportunity_id, "user_id": obj_in.user_id},
            )
    try:
        assignment = crud_assignment.create_assignment(db, organization_id=organization_id, obj_in=obj_in)
    except IntegrityError as exc:
        db.rollback()
        existing = crud_assignment.get_active_assignment_for_opportunity_user(
            db, organization_id=organization_id, opportunity_id=obj_in.opportunity_id, user_id=obj_in.user_id
        )
        raise Conflict(
            "User already has an active commission assignment for this opportunity",
            {"existing_assignment_id": existing.id if existing else None, "opportunity_id": obj_in.opportunity_id, "user_id": obj_in.user_id},
        ) from exc
    logger.info(f"Created {assignment.assignment_type} assignment {assignment.id} for user {assignment.user_id}")
    return assignment
