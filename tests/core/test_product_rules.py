import pytest
from sqlalchemy.orm import Session
from decimal import Decimal

from commission_engine.core import product_rules
from commission_engine.core.commissions_calculator import record_subscription_event
from commission_engine.core.exceptions import Conflict, NoActiveRuleFound
from commission_engine.crud import crud_commission, crud_product_rule
from commission_engine.schemas.event import CommissionableEventRequest
from commission_engine.schemas.product_rule import ProductCommissionRuleCreate, ProductCommissionRuleUpdate
from tests.conftest import TEST_ORG_ID, TEST_USER_ID

pytestmark = pytest.mark.core

def _create(db: Session, **overrides):
    data = {"product_id": "prod_crm", "initial_sale_rate": Decimal("10"), "renewal_rate": Decimal("5")}
    data.update(overrides)
    return product_rules.create_rule(
        db, organization_id=TEST_ORG_ID, obj_in=ProductCommissionRuleCreate(**data), created_by=TEST_USER_ID
    )


def test_create_rule_records_creator(db_session: Session):
    rule = _create(db_session)
    assert rule.is_active is True
    assert rule.created_by == TEST_USER_ID
    assert rule.trailing_rate_multiplier == Decimal("0.5")

def test_second_active_rule_for_product_conflicts(db_session: Session):
    first = _create(db_session)
    with pytest.raises(Conflict) as exc_info:
        _create(db_session, renewal_rate=Decimal("7"))
    assert exc_info.value.details["existing_rule_id"] == first.id

def test_unused_rule_is_updated_in_place(db_session: Session):
    rule = _create(db_session)
    updated = product_rules.update_rule(
        db_session, organization_id=TEST_ORG_ID, rule_id=rule.id,
        obj_in=ProductCommissionRuleUpdate(renewal_rate=Decimal("7")),
    )
    assert updated.id == rule.id
    assert updated.renewal_rate == Decimal("7")

@pytest.mark.asyncio
async def test_used_rule_is_versioned(db_session: Session, catalog_product, product_assignment):
    rule = _create(db_session)
    outcome = await record_subscription_event(db_session, organization_id=TEST_ORG_ID, request=CommissionableEventRequest(
        subscription_id="sub_1", product_id="prod_crm", amount=Decimal("100"),
    ))
    new_rule = product_rules.update_rule(
        db_session, organization_id=TEST_ORG_ID, rule_id=rule.id,
        obj_in=ProductCommissionRuleUpdate(initial_sale_rate=Decimal("20")), updated_by="manager_2",
    )
    assert new_rule.id != rule.id
    assert new_rule.supersedes_rule_id == rule.id
    assert new_rule.initial_sale_rate == Decimal("20")
    assert new_rule.renewal_rate == Decimal("5")
    assert new_rule.created_by == "manager_2"

    db_session.expire_all()
    old_rule = crud_product_rule.get_rule(db_session, organization_id=TEST_ORG_ID, rule_id=rule.id)
    assert old_rule.is_active is False
    assert old_rule.initial_sale_rate == Decimal("10")
    record = crud_commission.get_commission_record(
        db_session, organization_id=TEST_ORG_ID, record_id=outcome.commission_records[0].id
    )
    assert record.product_rule_id == rule.id
    active = crud_product_rule.get_active_rule_for_product(db_session, organization_id=TEST_ORG_ID, product_id="prod_crm")
    assert active.id == new_rule.id

def test_delete_is_soft(db_session: Session):
    rule = _create(db_session)
    product_rules.delete_rule(db_session, organization_id=TEST_ORG_ID, rule_id=rule.id)
    assert crud_product_rule.get_active_rule_for_product(db_session, organization_id=TEST_ORG_ID, product_id="prod_crm") is None
    assert crud_product_rule.get_rule(db_session, organization_id=TEST_ORG_ID, rule_id=rule.id) is not None
    # A fresh rule can take its place
    assert _create(db_session).id != rule.id

def test_unknown_rule(db_session: Session):
    with pytest.raises(NoActiveRuleFound):
        product_rules.update_rule(db_session, organization_id=TEST_ORG_ID, rule_id=999, obj_in=ProductCommissionRuleUpdate())
    with pytest.raises(NoActiveRuleFound):
        product_rules.delete_rule(db_session, organization_id="org_other", rule_id=999)
