from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from commission_engine.core import lifecycle
from commission_engine.core.dependencies import Principal, get_current_principal
from commission_engine.db.session import get_db
from commission_engine.schemas.lifecycle import SubscriptionLifecycle

router = APIRouter()

@router.get("/{subscription_id}/lifecycle", response_model=SubscriptionLifecycle)
async def read_subscription_lifecycle(
    subscription_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Lifecycle history of a subscription and the period number derived from it.
    """
    return {
        "subscription_id": subscription_id,
        "current_period_number": lifecycle.current_period_number(
            db, organization_id=principal.organization_id, subscription_id=subscription_id
        ),
        "events": lifecycle.lifecycle_history(db, organization_id=principal.organization_id, subscription_id=subscription_id),
    }
