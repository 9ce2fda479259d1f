from pydantic import BaseModel
from typing import Optional, List, Any, Dict, Literal
from datetime import datetime

CheckResult = Literal["passed", "warning", "failed", "info"]
ValidationStatusValue = Literal["passed", "warning", "failed", "override"]

class ValidationCheck(BaseModel):
    check_name: str
    result: CheckResult
    message: str
    details: Optional[Dict[str, Any]] = None

class ValidationResult(BaseModel):
    """Outcome of one validation run. A failed status is data, not an error."""
    status: ValidationStatusValue
    requires_approval: bool = False
    checks: List[ValidationCheck] = []
    can_proceed: bool
    suggested_actions: Optional[List[str]] = None
    audit_id: Optional[int] = None

class ValidationAudit(BaseModel):
    id: int
    commission_record_id: int
    validation_status: str
    checks_performed: List[ValidationCheck]
    requires_approval: bool
    approval_status: Optional[str] = None
    approved_by: Optional[str] = None
    approval_date: Optional[datetime] = None
    approval_notes: Optional[str] = None
    override_by: Optional[str] = None
    override_reason: Optional[str] = None
    override_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
