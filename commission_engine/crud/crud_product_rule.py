from sqlalchemy.orm import Session
from typing import Optional, List

from commission_engine.models.product_rule import ProductCommissionRule
from commission_engine.models.commission import CommissionRecord
from commission_engine.schemas.product_rule import ProductCommissionRuleCreate, ProductCommissionRuleUpdate

def get_rule(db: Session, *, organization_id: str, rule_id: int) -> Optional[ProductCommissionRule]:
    return (
        db.query(ProductCommissionRule)
        .filter(ProductCommissionRule.organization_id == organization_id, ProductCommissionRule.id == rule_id)
        .first()
    )

def get_active_rule_for_product(db: Session, *, organization_id: str, product_id: str) -> Optional[ProductCommissionRule]:
    """
    The rule in force for a product is the highest-priority active row.
    Newer rows win ties so a re-versioned rule takes over from the one it replaced.
    """
    return (
        db.query(ProductCommissionRule)
        .filter(
            ProductCommissionRule.organization_id == organization_id,
            ProductCommissionRule.product_id == product_id,
            ProductCommissionRule.is_active == True,
        )
        .order_by(ProductCommissionRule.priority.desc(), ProductCommissionRule.id.desc())
        .first()
    )

def get_rules(
    db: Session, *, organization_id: str, product_id: Optional[str] = None, include_inactive: bool = False,
    skip: int = 0, limit: int = 100
) -> List[ProductCommissionRule]:
    query = db.query(ProductCommissionRule).filter(ProductCommissionRule.organization_id == organization_id)
    if product_id:
        query = query.filter(ProductCommissionRule.product_id == product_id)
    if not include_inactive:
        query = query.filter(ProductCommissionRule.is_active == True)
    return query.order_by(ProductCommissionRule.product_id, ProductCommissionRule.priority.desc()).offset(skip).limit(limit).all()

def create_rule(
    db: Session, *, organization_id: str, obj_in: ProductCommissionRuleCreate,
    created_by: Optional[str] = None, supersedes_rule_id: Optional[int] = None, commit: bool = True
) -> ProductCommissionRule:
    db_obj = ProductCommissionRule(
        **obj_in.model_dump(),
        organization_id=organization_id,
        created_by=created_by,
        supersedes_rule_id=supersedes_rule_id,
    )
    db.add(db_obj)
    if commit:
        db.commit()
        db.refresh(db_obj)
    else:
        db.flush()
    return db_obj

def is_rule_referenced(db: Session, *, rule_id: int) -> bool:
    """True once any commission record has been calculated from this rule."""
    return db.query(CommissionRecord.id).filter(CommissionRecord.product_rule_id == rule_id).first() is not None

def update_rule(db: Session, *, db_obj: ProductCommissionRule, obj_in: ProductCommissionRuleUpdate) -> ProductCommissionRule:
    """
    In-place update. Only valid for rules no commission record points at;
    callers re-version referenced rules instead (see core.product_rules).
    """
    update_data = obj_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def deactivate_rule(db: Session, *, db_obj: ProductCommissionRule, commit: bool = True) -> ProductCommissionRule:
    db_obj.is_active = False
    db.add(db_obj)
    if commit:
        db.commit()
        db.refresh(db_obj)
    else:
        db.flush()
    return db_obj
