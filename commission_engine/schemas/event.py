from pydantic import BaseModel, Field, field_validator
from typing import Optional, Any, Dict, List, Literal
from datetime import date, datetime
from decimal import Decimal

from commission_engine.core.timeutils import to_naive_utc
from commission_engine.schemas.commission import CommissionRecord
from commission_engine.schemas.recurring import RecurringCommissionTracking

EventSource = Literal["subscription", "opportunity", "manual"]

class CommissionEventCreate(BaseModel):
    """Internal: written once per triggering occurrence and never updated."""
    organization_id: str
    event_source: EventSource
    event_type: str = Field(..., max_length=50)
    product_id: Optional[str] = None
    subscription_id: Optional[str] = None
    opportunity_id: Optional[str] = None
    contact_id: Optional[str] = None
    event_amount: Decimal
    event_date: Optional[datetime] = None
    event_data: Optional[Dict[str, Any]] = None

class CommissionEvent(BaseModel):
    id: int
    organization_id: str
    event_source: str
    event_type: str
    product_id: Optional[str] = None
    subscription_id: Optional[str] = None
    opportunity_id: Optional[str] = None
    contact_id: Optional[str] = None
    event_amount: Decimal
    event_date: datetime
    event_data: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True

class CommissionableEventRequest(BaseModel):
    """
    Payload sent by the billing and CRM collaborators.
    amount/product_id are checked by the engine so that a missing value is an
    InvalidRequest rather than a schema error.
    """
    event_type: str = Field(default="subscription_payment", max_length=50)
    subscription_id: Optional[str] = Field(default=None, max_length=64)
    opportunity_id: Optional[str] = Field(default=None, max_length=64)
    product_id: Optional[str] = Field(default=None, max_length=64)
    contact_id: Optional[str] = Field(default=None, max_length=64)
    amount: Optional[Decimal] = Field(default=None, ge=0)
    event_date: Optional[datetime] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    assignment_id: Optional[int] = None
    pipeline_stage_id: Optional[str] = Field(default=None, max_length=64)  # Current stage of the opportunity
    profit_amount: Optional[Decimal] = Field(default=None, ge=0)  # Basis for percentage_profit assignments

    @field_validator("event_date")
    @classmethod
    def event_date_as_naive_utc(cls, v):
        return to_naive_utc(v)

class RecordEventResult(BaseModel):
    commission_due: bool
    message: Optional[str] = None
    period_number: Optional[int] = None
    event: Optional[CommissionEvent] = None
    commission_records: List[CommissionRecord] = []
    recurring_tracking: Optional[RecurringCommissionTracking] = None

class RecurringEventResponse(BaseModel):
    """Response of the subscription-only endpoint."""
    message: Optional[str] = None
    period_number: Optional[int] = None
    event: Optional[CommissionEvent] = None
    commission_record: Optional[CommissionRecord] = None
    tracking: Optional[RecurringCommissionTracking] = None
