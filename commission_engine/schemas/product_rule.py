from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import date, datetime
from decimal import Decimal

MrrCommissionType = Literal["first_payment_only", "duration", "trailing"]

class ProductCommissionRuleBase(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=64)
    priority: int = 100
    initial_sale_rate: Decimal = Field(default=Decimal("10"), ge=0, le=100)
    renewal_rate: Decimal = Field(default=Decimal("5"), ge=0, le=100)
    mrr_commission_type: Optional[MrrCommissionType] = "duration"
    mrr_duration_months: Optional[int] = Field(default=12, ge=1)
    trailing_months: Optional[int] = Field(default=6, ge=0)
    trailing_rate_multiplier: Decimal = Field(default=Decimal("0.5"), ge=0, le=1)
    min_sale_amount: Optional[Decimal] = Field(default=None, ge=0)
    max_commission_amount: Optional[Decimal] = Field(default=None, ge=0)
    estimated_margin_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    max_commission_of_margin: Optional[Decimal] = Field(default=Decimal("50"), ge=0, le=100)
    requires_manager_approval: bool = False
    approval_threshold: Optional[Decimal] = Field(default=None, ge=0)
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None

class ProductCommissionRuleCreate(ProductCommissionRuleBase):
    pass

class ProductCommissionRuleUpdate(BaseModel):
    priority: Optional[int] = None
    initial_sale_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    renewal_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    mrr_commission_type: Optional[MrrCommissionType] = None
    mrr_duration_months: Optional[int] = Field(default=None, ge=1)
    trailing_months: Optional[int] = Field(default=None, ge=0)
    trailing_rate_multiplier: Optional[Decimal] = Field(default=None, ge=0, le=1)
    min_sale_amount: Optional[Decimal] = Field(default=None, ge=0)
    max_commission_amount: Optional[Decimal] = Field(default=None, ge=0)
    estimated_margin_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    max_commission_of_margin: Optional[Decimal] = Field(default=None, ge=0, le=100)
    requires_manager_approval: Optional[bool] = None
    approval_threshold: Optional[Decimal] = Field(default=None, ge=0)
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None

class ProductCommissionRule(ProductCommissionRuleBase):
    id: int
    organization_id: str
    is_active: bool
    created_by: Optional[str] = None
    supersedes_rule_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
