import pytest
from mongomock_motor import AsyncMongoMockClient

from inala.core.config import settings
from inala.db.mongo import use_database
from inala.services import tenant_service, user_service, customer_service, inventory_service


@pytest.fixture
def db(monkeypatch):
    """Fresh in-memory database per test; SMTP stays unconfigured."""
    monkeypatch.setattr(settings, "SMTP_HOST", None)
    client = AsyncMongoMockClient()
    database = client["inala_test"]
    use_database(database, client)
    yield database
    use_database(None, None)


@pytest.fixture
async def business(db):
    return await tenant_service.create_tenant({
        "id": "inala-butchery", "name": "Inala Butchery", "type": "BUSINESS",
    })


@pytest.fixture
async def stokvel(db):
    return await tenant_service.create_tenant({
        "id": "umoja-stokvel", "name": "Umoja Stokvel", "type": "STOKVEL", "target": 10000,
    })


@pytest.fixture
async def lender(db):
    return await tenant_service.create_tenant({
        "id": "ubuntu-loans", "name": "Ubuntu Loans", "type": "LENDING",
    })


@pytest.fixture
async def admin(business):
    return await user_service.create_user({
        "id": "u_admin", "name": "Thandi Admin", "email": "thandi@example.com",
        "role": "TENANT_ADMIN", "tenant_id": business["id"],
    }, send_welcome=False)


@pytest.fixture
async def cashier(business):
    return await user_service.create_user({
        "id": "u_cashier", "name": "Sipho Cashier", "email": "sipho@example.com",
        "role": "CASHIER", "tenant_id": business["id"],
    }, send_welcome=False)


@pytest.fixture
async def beef(business):
    return await inventory_service.add_product(business["id"], {
        "name": "Beef Mince", "sku": "BEEF-001", "price": 100, "cost": 60,
        "stock_level": 20, "category": "Meat", "unit": "kg",
    })


@pytest.fixture
async def customer(business):
    return await customer_service.add_customer(business["id"], {
        "name": "Lerato Mokoena", "phone": "0821234567", "credit_limit": 500,
    })
