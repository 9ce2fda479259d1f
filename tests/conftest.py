import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient
from datetime import datetime
from decimal import Decimal
import os
import uuid

# Add project root to sys.path to allow imports from commission_engine
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))


from commission_engine.main import app
from commission_engine.db.base import Base
from commission_engine.db.session import get_db
from commission_engine.core.security import create_access_token
from commission_engine.crud import crud_assignment, crud_catalog, crud_product_rule
from commission_engine.schemas.assignment import CommissionAssignmentCreate
from commission_engine.schemas.catalog import ProductUpsert, PipelineStageUpsert
from commission_engine.schemas.product_rule import ProductCommissionRuleCreate

# Use a separate SQLite database for testing
TEST_SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_ORG_ID = "org_test"
OTHER_ORG_ID = "org_other"
TEST_USER_ID = "manager_1"

Base.metadata.create_all(bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(scope="session")
def test_engine():
    Base.metadata.create_all(bind=engine)
    yield engine

@pytest.fixture(scope="function")
def db_session(test_engine):
    """
    Provides a database session for each test function.
    Tables are dropped and recreated for every test to keep tests isolated.
    """
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session):
    # Depends on db_session so every API test starts from fresh tables
    with TestClient(app) as c:
        yield c

def make_token_headers(user_id: str = TEST_USER_ID, organization_id: str = TEST_ORG_ID) -> dict:
    token = create_access_token(data={"sub": user_id, "org": organization_id})
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture(scope="function")
def token_headers() -> dict:
    return make_token_headers()

@pytest.fixture(scope="function")
def other_org_token_headers() -> dict:
    return make_token_headers(user_id="someone_else", organization_id=OTHER_ORG_ID)


# Helpers for building engine configuration directly through CRUD

def create_catalog_product(db: Session, *, product_id: str = None, is_active: bool = True,
                           created_at: datetime = None, organization_id: str = TEST_ORG_ID):
    return crud_catalog.upsert_product(db, organization_id=organization_id, obj_in=ProductUpsert(
        product_id=product_id or f"prod_{uuid.uuid4().hex[:6]}",
        name="Test Product",
        is_active=is_active,
        created_at=created_at or datetime(2020, 1, 1),
    ))

def create_rule(db: Session, *, product_id: str, organization_id: str = TEST_ORG_ID, **overrides):
    data = {
        "product_id": product_id,
        "initial_sale_rate": Decimal("10"),
        "renewal_rate": Decimal("5"),
        "mrr_commission_type": "duration",
        "mrr_duration_months": 12,
        "trailing_months": 0,
    }
    data.update(overrides)
    return crud_product_rule.create_rule(db, organization_id=organization_id, obj_in=ProductCommissionRuleCreate(**data))

def create_product_assignment(db: Session, *, product_id: str, user_id: str = "rep_1",
                              organization_id: str = TEST_ORG_ID, **overrides):
    data = {
        "assignment_type": "product",
        "product_id": product_id,
        "user_id": user_id,
        "user_name": "Rep One",
        "user_email": "rep1@example.com",
        "commission_type": "percentage_gross",
        "base_rate": Decimal("10"),
    }
    data.update(overrides)
    return crud_assignment.create_assignment(db, organization_id=organization_id, obj_in=CommissionAssignmentCreate(**data))

def create_opportunity_assignment(db: Session, *, opportunity_id: str, user_id: str = "rep_1",
                                  organization_id: str = TEST_ORG_ID, **overrides):
    data = {
        "assignment_type": "opportunity",
        "opportunity_id": opportunity_id,
        "user_id": user_id,
        "commission_type": "percentage_gross",
        "base_rate": Decimal("10"),
    }
    data.update(overrides)
    return crud_assignment.create_assignment(db, organization_id=organization_id, obj_in=CommissionAssignmentCreate(**data))

def create_pipeline(db: Session, *, pipeline_id: str = "pipe_1", stage_ids=("S1", "S2", "S3", "S4"),
                    organization_id: str = TEST_ORG_ID):
    return crud_catalog.upsert_stages(db, organization_id=organization_id, stages_in=[
        PipelineStageUpsert(pipeline_id=pipeline_id, stage_id=stage_id, name=stage_id, position=position)
        for position, stage_id in enumerate(stage_ids)
    ])


@pytest.fixture(scope="function")
def catalog_product(db_session: Session):
    return create_catalog_product(db_session, product_id="prod_crm")

@pytest.fixture(scope="function")
def trailing_rule(db_session: Session, catalog_product):
    """initial 10%, renewal 5% for 3 months, then 2 trailing months at half rate."""
    return create_rule(
        db_session,
        product_id=catalog_product.product_id,
        initial_sale_rate=Decimal("10"),
        renewal_rate=Decimal("5"),
        mrr_commission_type="trailing",
        mrr_duration_months=3,
        trailing_months=2,
    )

@pytest.fixture(scope="function")
def product_assignment(db_session: Session, catalog_product):
    return create_product_assignment(db_session, product_id=catalog_product.product_id)
