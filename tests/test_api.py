import asyncio

import pytest
from fastapi.testclient import TestClient

from inala.core.config import settings
from inala.main import app
from inala.services import user_service
from utils.constants import SUPER_ADMIN_SEED

API = settings.API_PREFIX
ROOT = {"X-User-Id": SUPER_ADMIN_SEED["id"]}


@pytest.fixture
def client(db):
    asyncio.run(user_service.create_user(dict(SUPER_ADMIN_SEED), send_welcome=False))
    return TestClient(app)


@pytest.fixture
def shop(client):
    """A business tenant with an admin, a cashier and one product."""
    response = client.post(f"{API}/tenants", headers=ROOT, json={
        "id": "kasi-spaza", "name": "Kasi Spaza", "type": "BUSINESS",
    })
    assert response.status_code == 201

    headers = {}
    for name, role in (("Zodwa", "TENANT_ADMIN"), ("Musa", "CASHIER")):
        response = client.post(f"{API}/users", headers=ROOT, json={
            "name": name, "email": f"{name.lower()}@example.com", "role": role, "tenant_id": "kasi-spaza",
        })
        assert response.status_code == 201
        headers[role] = {"X-User-Id": response.json()["id"]}

    product = client.post(f"{API}/tenants/kasi-spaza/products", headers=headers["TENANT_ADMIN"], json={
        "name": "Maize Meal 10kg", "sku": "MM-10", "price": 120, "cost": 90, "stock_level": 10,
    }).json()
    return {
        "tenant_id": "kasi-spaza",
        "product": product,
        "admin": headers["TENANT_ADMIN"],
        "cashier": headers["CASHIER"],
    }


def test_root_and_liveness(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/live").json() == {"status": "alive"}


def test_missing_user_header_is_rejected(client):
    response = client.get(f"{API}/users/me")
    assert response.status_code == 401
    assert response.json()["code"] == "AUTHENTICATION_FAILED"


def test_unknown_route_uses_error_envelope(client):
    response = client.get(f"{API}/does-not-exist")
    assert response.status_code == 404
    assert response.json()["code"] == "HTTP_ERROR"


def test_cashier_cannot_reach_other_tenant(client, shop):
    client.post(f"{API}/tenants", headers=ROOT, json={"id": "other-shop", "name": "Other", "type": "BUSINESS"})
    response = client.get(f"{API}/tenants/other-shop/products", headers=shop["cashier"])
    assert response.status_code == 403


def test_checkout_and_void_flow(client, shop):
    tenant = shop["tenant_id"]
    sale = client.post(f"{API}/tenants/{tenant}/checkout", headers=shop["cashier"], json={
        "items": [{"product_id": shop["product"]["id"], "quantity": 2}], "method": "CASH",
    })
    assert sale.status_code == 201
    sale = sale.json()
    assert sale["cashier"] == "Musa"
    assert sale["amount"] == 276.0

    requested = client.post(f"{API}/tenants/{tenant}/transactions/{sale['id']}/void",
                            headers=shop["cashier"], json={"reason": "customer changed mind"}).json()
    assert requested["void_requested"] is True
    assert requested["status"] == "COMPLETED"

    voided = client.post(f"{API}/tenants/{tenant}/transactions/{sale['id']}/void",
                         headers=shop["admin"], json={"reason": "approved return"}).json()
    assert voided["status"] == "VOIDED"

    product = client.get(f"{API}/tenants/{tenant}/products/{shop['product']['id']}", headers=shop["cashier"]).json()
    assert product["stock_level"] == 10

    audit = client.get(f"{API}/tenants/{tenant}/audit-logs", headers=shop["admin"]).json()
    assert {a["action"] for a in audit} == {"TRANSACTION_VOID", "VOID_REQUEST"}


def test_credit_checkout_without_customer_conflicts(client, shop):
    response = client.post(f"{API}/tenants/{shop['tenant_id']}/checkout", headers=shop["cashier"], json={
        "items": [{"product_id": shop["product"]["id"], "quantity": 1}], "method": "CREDIT",
    })
    assert response.status_code == 409
    assert response.json()["error"] == "Please select a customer for credit sales."


def test_adjustment_requires_admin(client, shop):
    tenant = shop["tenant_id"]
    sale = client.post(f"{API}/tenants/{tenant}/checkout", headers=shop["cashier"], json={
        "items": [{"product_id": shop["product"]["id"], "quantity": 1}],
    }).json()

    denied = client.post(f"{API}/tenants/{tenant}/transactions/{sale['id']}/adjust",
                         headers=shop["cashier"], json={"reason": "discount", "amount": 100})
    assert denied.status_code == 403

    adjusted = client.post(f"{API}/tenants/{tenant}/transactions/{sale['id']}/adjust",
                           headers=shop["admin"], json={"reason": "discount", "amount": 100}).json()
    assert adjusted["amount"] == 100.0
    assert adjusted["original_amount"] == 138.0


def test_period_report_endpoint(client, shop):
    tenant = shop["tenant_id"]
    client.post(f"{API}/tenants/{tenant}/checkout", headers=shop["cashier"], json={
        "items": [{"product_id": shop["product"]["id"], "quantity": 1}],
    })
    client.post(f"{API}/tenants/{tenant}/expenses", headers=shop["cashier"], json={
        "description": "Taxi fare", "amount": 38,
    })

    report = client.get(f"{API}/tenants/{tenant}/reports/period", headers=shop["admin"], params={"mode": "month"}).json()
    assert report["total_sales"] == 138.0
    assert report["total_expenses"] == 38.0
    assert report["gross_profit"] == 30.0


def test_request_validation_envelope(client, shop):
    response = client.post(f"{API}/tenants/{shop['tenant_id']}/checkout", headers=shop["cashier"], json={"items": []})
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_stokvel_endpoints(client):
    client.post(f"{API}/tenants", headers=ROOT, json={
        "id": "masakhane", "name": "Masakhane", "type": "STOKVEL", "target": 5000,
    })
    member = client.post(f"{API}/tenants/masakhane/stokvel/members", headers=ROOT, json={
        "name": "Gogo Dlamini", "monthly_pledge": 250,
    }).json()
    client.post(f"{API}/tenants/masakhane/stokvel/contributions", headers=ROOT, json={
        "member_id": member["id"], "amount": 250, "period": "2025-04",
    })

    check = client.get(f"{API}/tenants/masakhane/stokvel/payouts/eligibility",
                       headers=ROOT, params={"period": "2025-04"}).json()
    assert check["eligible"] is True

    payout = client.post(f"{API}/tenants/masakhane/stokvel/payouts", headers=ROOT, json={"period": "2025-04"})
    assert payout.status_code == 201
    assert payout.json()["amount"] == 250.0


def test_exchange_endpoints(client):
    converted = client.get(f"{API}/exchange/convert", params={"amount": 100, "from": "ZAR", "to": "MZN"}).json()
    assert converted["result"] == 345.0

    bad = client.get(f"{API}/exchange/convert", params={"amount": 1, "from": "ZAR", "to": "XXX"})
    assert bad.status_code == 422


def test_only_super_admin_updates_settings(client, shop):
    denied = client.patch(f"{API}/settings", headers=shop["admin"], json={"erp_name": "Hacked"})
    assert denied.status_code == 403

    updated = client.patch(f"{API}/settings", headers=ROOT, json={"erp_name": "INALA"}).json()
    assert updated["erp_name"] == "INALA"


def test_failed_rate_refresh_is_bad_gateway(client, monkeypatch):
    import httpx
    from inala.services import exchange_service as exchange_module

    monkeypatch.setattr(settings, "EXCHANGE_RATE_API_URL", "https://rates.example.com/latest/ZAR")
    real_client = httpx.AsyncClient
    monkeypatch.setattr(
        exchange_module.httpx, "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(lambda request: httpx.Response(500)), **kwargs)
    )

    response = client.post(f"{API}/exchange/refresh", headers=ROOT)
    assert response.status_code == 502
    assert response.json()["code"] == "EXTERNAL_SERVICE_ERROR"


def test_transaction_filters(client, shop):
    tenant = shop["tenant_id"]
    client.post(f"{API}/tenants/{tenant}/checkout", headers=shop["cashier"], json={
        "items": [{"product_id": shop["product"]["id"], "quantity": 1}], "method": "CASH",
    })

    listed = client.get(f"{API}/tenants/{tenant}/transactions", headers=shop["admin"], params={
        "start": "2020-01-01T00:00:00Z", "end": "2100-01-01T00:00:00Z",
    })
    assert listed.status_code == 200
    assert len(listed.json()) == 1

    since = client.get(f"{API}/tenants/{tenant}/transactions", headers=shop["admin"],
                       params={"start": "2100-01-01T00:00:00Z"})
    assert since.json() == []

    bogus = client.get(f"{API}/tenants/{tenant}/transactions", headers=shop["admin"], params={"type": "BOGUS"})
    assert bogus.status_code == 422
    assert bogus.json()["code"] == "VALIDATION_ERROR"

    loans = client.get(f"{API}/tenants/{tenant}/loans", headers=shop["admin"], params={"status": "LATE"})
    assert loans.status_code == 422


def test_ledger_entry_for_unknown_customer_is_not_kept(client, shop):
    tenant = shop["tenant_id"]
    response = client.post(f"{API}/tenants/{tenant}/transactions", headers=shop["admin"], json={
        "type": "DEBT_PAYMENT", "amount": 40, "customer_id": "c_missing",
    })
    assert response.status_code == 404

    listed = client.get(f"{API}/tenants/{tenant}/transactions", headers=shop["admin"]).json()
    assert listed == []
