from pydantic import BaseModel, Field, field_validator
from typing import Annotated, Optional, List, Union, Literal
from datetime import datetime
from decimal import Decimal

# calculation_details is discriminated by "kind" and carries a version so older
# records stay readable when the calculation changes.

class SubscriptionCalculation(BaseModel):
    kind: Literal["subscription"] = "subscription"
    version: int = 1
    period_number: int
    tracking_type: Literal["initial", "renewal", "trailing"]
    product_rule_id: int
    mrr_commission_type: Optional[str] = None

class OpportunityCalculation(BaseModel):
    kind: Literal["opportunity"] = "opportunity"
    version: int = 1
    commission_type: str
    base_rate: Decimal
    basis: Literal["gross", "profit", "fixed"]
    pipeline_stage_id: Optional[str] = None
    profit_amount: Optional[Decimal] = None

class BonusCalculation(BaseModel):
    kind: Literal["bonus"] = "bonus"
    version: int = 1
    reason: Optional[str] = None

CalculationDetails = Annotated[
    Union[SubscriptionCalculation, OpportunityCalculation, BonusCalculation],
    Field(discriminator="kind"),
]

# Methods whose amount is not base_amount * rate / 100
FIXED_CALCULATION_METHODS = {"fixed_amount", "manual_bonus"}


class CommissionRecordCreate(BaseModel):
    """Schema for creating a commission record. Used internally by the engine."""
    organization_id: str
    event_id: int
    assignment_id: int
    product_rule_id: Optional[int] = None
    user_id: str
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    base_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    calculation_method: str = Field(..., max_length=50)
    calculation_details: Optional[CalculationDetails] = None
    status: str = "pending"
    is_due_for_payout: bool = False

class CommissionRecord(BaseModel):
    id: int
    organization_id: str
    event_id: int
    assignment_id: int
    product_rule_id: Optional[int] = None
    user_id: str
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    base_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    calculation_method: str
    calculation_details: Optional[CalculationDetails] = None
    status: str
    is_due_for_payout: bool
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    approval_notes: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ManualBonusCreate(BaseModel):
    assignment_id: int
    product_id: str = Field(..., min_length=1, max_length=64)
    amount: Decimal = Field(..., gt=0)
    contact_id: Optional[str] = Field(default=None, max_length=64)
    event_type: str = Field(default="manual_bonus", max_length=50)  # E.g., "challenge_bonus"
    reason: Optional[str] = None

class ApprovalRequest(BaseModel):
    notes: Optional[str] = None

class OverrideRequest(BaseModel):
    reason: str = Field(..., min_length=1)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("An override reason is required")
        return v.strip()

class ActionResult(BaseModel):
    success: bool

class CommissionList(BaseModel):
    commissions: List[CommissionRecord]
    total: int
