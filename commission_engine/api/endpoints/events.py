from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from commission_engine.core.commissions_calculator import record_commissionable_event
from commission_engine.core.dependencies import Principal, get_current_principal
from commission_engine.db.session import get_db
from commission_engine.schemas.event import CommissionableEventRequest, RecordEventResult

router = APIRouter()

@router.post("/", response_model=RecordEventResult)
async def record_event(
    event_in: CommissionableEventRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Record a commissionable event from the billing or CRM side.
    A charge that earns nothing (rule limits, stage gating) still answers 200,
    with commission_due=false and the reason in message.
    """
    outcome = await record_commissionable_event(db, organization_id=principal.organization_id, request=event_in)
    return RecordEventResult.model_validate(outcome, from_attributes=True)
