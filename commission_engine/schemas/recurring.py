from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import date, datetime
from decimal import Decimal

TrackingType = Literal["initial", "renewal", "trailing"]
TrackingStatusValue = Literal["scheduled", "pending", "earned", "paid"]

class RecurringTrackingCreate(BaseModel):
    organization_id: str
    commission_record_id: int
    subscription_id: str
    product_id: str
    tracking_type: TrackingType
    period_start: date
    period_end: date
    period_number: int = Field(..., ge=1)
    base_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    status: TrackingStatusValue = "pending"

class RecurringCommissionTracking(BaseModel):
    id: int
    organization_id: str
    commission_record_id: int
    subscription_id: str
    product_id: str
    tracking_type: str
    period_start: date
    period_end: date
    period_number: int
    base_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    status: str
    earned_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class TrackingStatusUpdate(BaseModel):
    status: TrackingStatusValue
    earned_date: Optional[date] = None

class TrackingStats(BaseModel):
    total_scheduled: Decimal = Decimal("0")
    total_pending: Decimal = Decimal("0")
    total_earned: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    upcoming_count: int = 0
    active_subscriptions: int = 0

class TrackingList(BaseModel):
    tracking_records: List[RecurringCommissionTracking]
    stats: TrackingStats

