from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from commission_engine.core import product_rules
from commission_engine.core.dependencies import Principal, get_current_principal
from commission_engine.crud import crud_product_rule
from commission_engine.db.session import get_db
from commission_engine.schemas.product_rule import (
    ProductCommissionRule,
    ProductCommissionRuleCreate,
    ProductCommissionRuleUpdate,
)

router = APIRouter()

@router.get("/", response_model=List[ProductCommissionRule])
async def read_product_rules(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    product_id: Optional[str] = Query(None),
    include_inactive: bool = Query(False, description="Also list deactivated and superseded rules"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    return crud_product_rule.get_rules(
        db, organization_id=principal.organization_id, product_id=product_id,
        include_inactive=include_inactive, skip=skip, limit=limit,
    )

@router.post("/", response_model=ProductCommissionRule, status_code=201)
async def create_product_rule(
    rule_in: ProductCommissionRuleCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Create the commission rule for a product. Only one active rule per product.
    """
    return product_rules.create_rule(
        db, organization_id=principal.organization_id, obj_in=rule_in, created_by=principal.user_id
    )

@router.put("/{rule_id}", response_model=ProductCommissionRule)
async def update_product_rule(
    rule_id: int,
    rule_in: ProductCommissionRuleUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Update a rule. If commissions were already calculated from it, a new
    version is created and returned instead; the old one is deactivated.
    """
    return product_rules.update_rule(
        db, organization_id=principal.organization_id, rule_id=rule_id, obj_in=rule_in, updated_by=principal.user_id
    )

@router.delete("/{rule_id}", response_model=ProductCommissionRule)
async def delete_product_rule(
    rule_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Logically delete a rule by setting is_active to False.
    """
    return product_rules.delete_rule(db, organization_id=principal.organization_id, rule_id=rule_id)
