from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

class SubscriptionLifecycleEvent(BaseModel):
    id: int
    subscription_id: str
    product_id: Optional[str] = None
    contact_id: Optional[str] = None
    event_type: str
    period_number: int
    event_date: datetime
    mrr_amount: Optional[Decimal] = None
    commission_impact: Optional[str] = None

    class Config:
        from_attributes = True

class SubscriptionLifecycle(BaseModel):
    subscription_id: str
    current_period_number: int
    events: List[SubscriptionLifecycleEvent]
