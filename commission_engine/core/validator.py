"""
Business-rule validation of commission records.

Five independent check groups run against a record, its event, product and
rule. Each group reports its own status and the overall status is the worst
of them (failed > warning > passed). Every run is stored as a new audit row.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from commission_engine.core.exceptions import CommissionRecordNotFound
from commission_engine.core.state import ValidationStatus
from commission_engine.crud import crud_catalog, crud_commission, crud_product_rule, crud_validation_audit
from commission_engine.models.commission import CommissionRecord
from commission_engine.models.validation_audit import ValidationAudit
from commission_engine.schemas.commission import FIXED_CALCULATION_METHODS
from commission_engine.schemas.validation import ValidationCheck, ValidationResult

logger = logging.getLogger(__name__)

_SEVERITY = {
    ValidationStatus.PASSED: 0,
    ValidationStatus.WARNING: 1,
    ValidationStatus.FAILED: 2,
}

_SUGGESTED_ACTIONS = [
    ("margin_check", "Review commission rate against product margin"),
    ("max_commission", "Consider applying commission cap"),
    ("duplicate_commission", "Review existing commissions for this sale"),
]

GroupResult = Tuple[List[ValidationCheck], ValidationStatus]


def _worst(*statuses: ValidationStatus) -> ValidationStatus:
    return max(statuses, key=lambda s: _SEVERITY[s])


def _money(value) -> Optional[float]:
    return float(value) if value is not None else None


def check_product_rules(record: CommissionRecord, rule, product) -> Tuple[List[ValidationCheck], ValidationStatus, bool]:
    checks = []
    status = ValidationStatus.PASSED
    requires_approval = False

    if record.event.product_id:
        if product is None:
            checks.append(ValidationCheck(check_name="product_active", result="failed", message="Product not found in catalog"))
            status = ValidationStatus.FAILED
        elif not product.is_active:
            checks.append(ValidationCheck(check_name="product_active", result="failed", message="Product is not active"))
            status = ValidationStatus.FAILED

    if rule is None:
        checks.append(ValidationCheck(check_name="product_rules", result="info", message="No specific product rules defined"))
        return checks, status, requires_approval

    threshold = rule.approval_threshold
    if rule.requires_manager_approval or (threshold is not None and Decimal(record.commission_amount) > Decimal(threshold)):
        requires_approval = True
        checks.append(ValidationCheck(
            check_name="approval_required",
            result="info",
            message=f"Manager approval required (threshold: {'$' + str(threshold) if threshold is not None else 'Always'})",
        ))
    return checks, status, requires_approval


def check_margins(record: CommissionRecord, rule) -> GroupResult:
    if rule is None or not rule.estimated_margin_percentage or not rule.max_commission_of_margin:
        return [], ValidationStatus.PASSED
    # Flat amounts carry a nominal 100% rate
    if record.calculation_method in FIXED_CALCULATION_METHODS:
        return [], ValidationStatus.PASSED

    margin = Decimal(rule.estimated_margin_percentage)
    share = Decimal(rule.max_commission_of_margin)
    max_allowed_rate = margin * share / Decimal(100)
    rate = Decimal(record.commission_rate)

    if rate > max_allowed_rate:
        return [ValidationCheck(
            check_name="margin_check",
            result="warning",
            message=f"Commission rate ({rate}%) exceeds {share}% of product margin ({margin}%)",
            details={
                "commission_rate": float(rate),
                "product_margin": float(margin),
                "max_allowed_of_margin": float(share),
                "max_allowed_rate": float(max_allowed_rate),
            },
        )], ValidationStatus.WARNING
    return [ValidationCheck(
        check_name="margin_check", result="passed", message="Commission within acceptable margin limits"
    )], ValidationStatus.PASSED


def check_amounts(record: CommissionRecord, rule) -> GroupResult:
    checks = []
    status = ValidationStatus.PASSED
    if rule is None:
        return checks, status

    sale_amount = Decimal(record.event.event_amount)
    if rule.min_sale_amount is not None and sale_amount < Decimal(rule.min_sale_amount):
        checks.append(ValidationCheck(
            check_name="min_amount",
            result="failed",
            message=f"Sale amount (${sale_amount}) below minimum (${rule.min_sale_amount}) for commission",
            details={"sale_amount": _money(sale_amount), "min_required": _money(rule.min_sale_amount)},
        ))
        status = ValidationStatus.FAILED

    amount = Decimal(record.commission_amount)
    if rule.max_commission_amount is not None and amount > Decimal(rule.max_commission_amount):
        checks.append(ValidationCheck(
            check_name="max_commission",
            result="warning",
            message=f"Commission amount (${amount}) exceeds maximum allowed (${rule.max_commission_amount})",
            details={"commission_amount": _money(amount), "max_allowed": _money(rule.max_commission_amount)},
        ))
        status = _worst(status, ValidationStatus.WARNING)
    return checks, status


def check_duplicates(db: Session, record: CommissionRecord) -> GroupResult:
    others = crud_commission.get_other_records_for_event(
        db, organization_id=record.organization_id, event_id=record.event_id, exclude_record_id=record.id
    )
    if not others:
        return [], ValidationStatus.PASSED
    total = sum((Decimal(o.commission_amount) for o in others), Decimal(record.commission_amount))
    return [ValidationCheck(
        check_name="duplicate_commission",
        result="warning",
        message=f"Found {len(others)} other commission(s) for this event",
        details={"duplicate_count": len(others), "total_commissions": float(total)},
    )], ValidationStatus.WARNING


def check_availability(record: CommissionRecord, product) -> GroupResult:
    """A product cannot earn commission on sales made before it existed."""
    if product is None or product.created_at is None:
        return [], ValidationStatus.PASSED
    sale_date = record.event.event_date
    if product.created_at > sale_date:
        return [ValidationCheck(
            check_name="product_availability",
            result="failed",
            message="Product was not available at the time of sale",
            details={"product_created": product.created_at.isoformat(), "sale_date": sale_date.isoformat()},
        )], ValidationStatus.FAILED
    return [ValidationCheck(
        check_name="product_availability", result="passed", message="Product was available at the time of sale"
    )], ValidationStatus.PASSED


def _rule_for(db: Session, record: CommissionRecord):
    """The rule the record was computed under, else the product's current rule."""
    if record.product_rule is not None:
        return record.product_rule
    if not record.event.product_id:
        return None
    return crud_product_rule.get_active_rule_for_product(
        db, organization_id=record.organization_id, product_id=record.event.product_id
    )


async def validate_commission(db: Session, *, organization_id: str, commission_record_id: int) -> ValidationResult:
    record = crud_commission.get_commission_record(db, organization_id=organization_id, record_id=commission_record_id)
    if record is None:
        raise CommissionRecordNotFound("Commission record not found", {"commission_record_id": commission_record_id})

    rule = _rule_for(db, record)
    product = None
    if record.event.product_id:
        product = crud_catalog.get_product(db, organization_id=organization_id, product_id=record.event.product_id)

    checks: List[ValidationCheck] = []
    product_checks, product_status, requires_approval = check_product_rules(record, rule, product)
    checks.extend(product_checks)
    statuses = [product_status]
    for group_checks, group_status in (
        check_margins(record, rule),
        check_amounts(record, rule),
        check_duplicates(db, record),
        check_availability(record, product),
    ):
        checks.extend(group_checks)
        statuses.append(group_status)
    status = _worst(*statuses)

    suggested_actions = []
    if status != ValidationStatus.PASSED:
        for check_name, action in _SUGGESTED_ACTIONS:
            if any(c.check_name == check_name and c.result != "passed" for c in checks):
                suggested_actions.append(action)

    audit = crud_validation_audit.create_audit(
        db,
        organization_id=organization_id,
        commission_record_id=record.id,
        validation_status=status.value,
        checks_performed=[c.model_dump(mode="json", exclude_none=True) for c in checks],
        requires_approval=requires_approval,
    )
    logger.info(
        f"Validated commission {record.id}: {status.value} ({len(checks)} checks, approval required: {requires_approval})"
    )
    if status == ValidationStatus.FAILED:
        failed = [c.check_name for c in checks if c.result == "failed"]
        logger.warning(f"Commission {record.id} failed validation: {', '.join(failed)}")

    return ValidationResult(
        status=status.value,
        requires_approval=requires_approval,
        checks=checks,
        can_proceed=status != ValidationStatus.FAILED,
        suggested_actions=suggested_actions or None,
        audit_id=audit.id,
    )


def validation_history(db: Session, *, organization_id: str, commission_record_id: int) -> List[ValidationAudit]:
    record = crud_commission.get_commission_record(db, organization_id=organization_id, record_id=commission_record_id)
    if record is None:
        raise CommissionRecordNotFound("Commission record not found", {"commission_record_id": commission_record_id})
    return crud_validation_audit.get_audit_history(db, organization_id=organization_id, commission_record_id=commission_record_id)
