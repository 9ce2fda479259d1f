import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from decimal import Decimal

from tests.conftest import create_rule

pytestmark = pytest.mark.api

def _charge(client: TestClient, headers: dict, subscription_id: str = "sub_rec"):
    return client.post("/api/v1/recurring/", headers=headers, json={
        "subscription_id": subscription_id, "product_id": "prod_crm", "amount": "100",
        "period_start": "2024-01-01", "period_end": "2024-01-31",
    })

def test_record_subscription_charge(client: TestClient, token_headers: dict, trailing_rule, product_assignment):
    response = _charge(client, token_headers)
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["period_number"] == 1
    assert Decimal(data["commission_record"]["commission_amount"]) == Decimal("10")
    assert data["tracking"]["period_start"] == "2024-01-01"
    assert data["tracking"]["tracking_type"] == "initial"
    assert data["message"] is None

def test_charge_without_commission(client: TestClient, token_headers: dict, db_session: Session, catalog_product, product_assignment):
    create_rule(db_session, product_id="prod_crm", mrr_commission_type="first_payment_only")
    _charge(client, token_headers)
    data = _charge(client, token_headers).json()
    assert data["commission_record"] is None
    assert data["tracking"] is None
    assert data["period_number"] == 2
    assert data["message"] == "No commission for renewals - first payment only rule"

def test_list_and_progress_tracking(client: TestClient, token_headers: dict, trailing_rule, product_assignment):
    tracking_id = _charge(client, token_headers).json()["tracking"]["id"]
    _charge(client, token_headers)

    listing = client.get("/api/v1/recurring/", headers=token_headers).json()
    assert len(listing["tracking_records"]) == 2
    assert Decimal(listing["stats"]["total_pending"]) == Decimal("15")
    assert listing["stats"]["active_subscriptions"] == 1

    response = client.patch(f"/api/v1/recurring/{tracking_id}", headers=token_headers,
                            json={"status": "earned", "earned_date": "2024-02-01"})
    assert response.status_code == 200
    assert response.json()["status"] == "earned"
    assert response.json()["earned_date"] == "2024-02-01"

    earned = client.get("/api/v1/recurring/?status=earned", headers=token_headers).json()
    assert [t["id"] for t in earned["tracking_records"]] == [tracking_id]
    assert Decimal(earned["stats"]["total_earned"]) == Decimal("10")

    commission_id = earned["tracking_records"][0]["commission_record_id"]
    record = client.get(f"/api/v1/commissions/{commission_id}", headers=token_headers).json()
    assert record["status"] == "approved"
    assert record["is_due_for_payout"] is True

def test_backwards_transition_is_400(client: TestClient, token_headers: dict, trailing_rule, product_assignment):
    tracking_id = _charge(client, token_headers).json()["tracking"]["id"]
    client.patch(f"/api/v1/recurring/{tracking_id}", headers=token_headers, json={"status": "paid"})
    response = client.patch(f"/api/v1/recurring/{tracking_id}", headers=token_headers, json={"status": "earned"})
    assert response.status_code == 400
    assert response.json()["details"]["current_status"] == "paid"

def test_unknown_status_is_422(client: TestClient, token_headers: dict, trailing_rule, product_assignment):
    tracking_id = _charge(client, token_headers).json()["tracking"]["id"]
    response = client.patch(f"/api/v1/recurring/{tracking_id}", headers=token_headers, json={"status": "cancelled"})
    assert response.status_code == 422

def test_tracking_of_other_organization_is_404(
    client: TestClient, token_headers: dict, other_org_token_headers: dict, trailing_rule, product_assignment
):
    tracking_id = _charge(client, token_headers).json()["tracking"]["id"]
    response = client.patch(f"/api/v1/recurring/{tracking_id}", headers=other_org_token_headers, json={"status": "earned"})
    assert response.status_code == 404
