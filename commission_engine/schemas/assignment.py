from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional, Literal
from datetime import datetime
from decimal import Decimal

AssignmentType = Literal["opportunity", "product"]
AssignmentCommissionType = Literal["percentage_gross", "percentage_profit", "fixed_amount"]
StageRequirementType = Literal["reached", "exact"]

class CommissionAssignmentBase(BaseModel):
    assignment_type: AssignmentType
    opportunity_id: Optional[str] = Field(default=None, max_length=64)
    product_id: Optional[str] = Field(default=None, max_length=64)
    user_id: str = Field(..., min_length=1, max_length=64)
    user_name: Optional[str] = Field(default=None, max_length=255)
    user_email: Optional[EmailStr] = None
    commission_type: AssignmentCommissionType = "percentage_gross"
    base_rate: Decimal = Field(..., ge=0)
    required_stage_id: Optional[str] = Field(default=None, max_length=64)
    stage_requirement_type: Optional[StageRequirementType] = None
    expiry_date: Optional[datetime] = None
    notes: Optional[str] = None

class CommissionAssignmentCreate(CommissionAssignmentBase):
    @model_validator(mode="after")
    def check_target_and_gating(self):
        if self.assignment_type == "opportunity" and not self.opportunity_id:
            raise ValueError("opportunity_id is required for opportunity assignments")
        if self.assignment_type == "product" and not self.product_id:
            raise ValueError("product_id is required for product assignments")
        if self.commission_type != "fixed_amount" and self.base_rate > 100:
            raise ValueError("Commission percentage must be a number between 0 and 100")
        if self.required_stage_id and not self.stage_requirement_type:
            self.stage_requirement_type = "reached"
        if self.stage_requirement_type and not self.required_stage_id:
            raise ValueError("stage_requirement_type needs a required_stage_id")
        return self

class CommissionAssignment(CommissionAssignmentBase):
    id: int
    organization_id: str
    is_active: bool
    is_disabled: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
