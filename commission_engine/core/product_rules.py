"""
Product commission rule maintenance.

A rule that has been used to calculate a commission is never edited in
place: the edit deactivates it and inserts a new version, so historical
records still point at the numbers they were computed with.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from commission_engine.core.exceptions import Conflict, NoActiveRuleFound
from commission_engine.crud import crud_product_rule
from commission_engine.models.product_rule import ProductCommissionRule
from commission_engine.schemas.product_rule import (
    ProductCommissionRuleCreate,
    ProductCommissionRuleUpdate,
)

logger = logging.getLogger(__name__)


def create_rule(
    db: Session, *, organization_id: str, obj_in: ProductCommissionRuleCreate, created_by: Optional[str] = None
) -> ProductCommissionRule:
    existing = crud_product_rule.get_active_rule_for_product(db, organization_id=organization_id, product_id=obj_in.product_id)
    if existing:
        raise Conflict(
            "An active commission rule already exists for this product",
            {"existing_rule_id": existing.id, "product_id": obj_in.product_id},
        )
    rule = crud_product_rule.create_rule(db, organization_id=organization_id, obj_in=obj_in, created_by=created_by)
    logger.info(f"Created commission rule {rule.id} for product {rule.product_id}")
    return rule


def get_rule_or_404(db: Session, *, organization_id: str, rule_id: int) -> ProductCommissionRule:
    rule = crud_product_rule.get_rule(db, organization_id=organization_id, rule_id=rule_id)
    if rule is None:
        raise NoActiveRuleFound("Commission rule not found", {"rule_id": rule_id})
    return rule


def update_rule(
    db: Session, *, organization_id: str, rule_id: int, obj_in: ProductCommissionRuleUpdate,
    updated_by: Optional[str] = None
) -> ProductCommissionRule:
    rule = get_rule_or_404(db, organization_id=organization_id, rule_id=rule_id)
    if not crud_product_rule.is_rule_referenced(db, rule_id=rule.id):
        return crud_product_rule.update_rule(db, db_obj=rule, obj_in=obj_in)

    merged = ProductCommissionRuleCreate.model_validate({
        **{field: getattr(rule, field) for field in ProductCommissionRuleCreate.model_fields},
        **obj_in.model_dump(exclude_unset=True),
    })
    crud_product_rule.deactivate_rule(db, db_obj=rule, commit=False)
    new_rule = crud_product_rule.create_rule(
        db, organization_id=organization_id, obj_in=merged, created_by=updated_by, supersedes_rule_id=rule.id, commit=False
    )
    db.commit()
    db.refresh(new_rule)
    logger.info(f"Commission rule {rule.id} is referenced by commission records; superseded by rule {new_rule.id}")
    return new_rule


def delete_rule(db: Session, *, organization_id: str, rule_id: int) -> ProductCommissionRule:
    rule = get_rule_or_404(db, organization_id=organization_id, rule_id=rule_id)
    return crud_product_rule.deactivate_rule(db, db_obj=rule)
