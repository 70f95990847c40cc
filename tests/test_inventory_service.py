import pytest

from inala.core.exceptions import BusinessRuleError, ValidationError, TenantGuardError
from inala.services import inventory_service, customer_service, tenant_service


async def test_products_only_for_business_tenants(stokvel):
    with pytest.raises(BusinessRuleError):
        await inventory_service.add_product(stokvel["id"], {"name": "Rice", "sku": "RICE-1", "price": 50})


async def test_duplicate_sku_rejected(business, beef):
    with pytest.raises(BusinessRuleError, match="already exists"):
        await inventory_service.add_product(business["id"], {"name": "Other", "sku": "BEEF-001", "price": 1})


async def test_lending_tenant_lists_no_products(lender):
    assert await inventory_service.list_products(lender["id"]) == []


async def test_search_matches_name_or_sku(business, beef):
    await inventory_service.add_product(business["id"], {"name": "Boerewors", "sku": "WORS-01", "price": 90})

    assert [p["sku"] for p in await inventory_service.list_products(business["id"], search="mince")] == ["BEEF-001"]
    assert [p["name"] for p in await inventory_service.list_products(business["id"], search="wors")] == ["Boerewors"]
    assert await inventory_service.list_categories(business["id"]) == ["General", "Meat"]


async def test_low_stock(business, beef):
    await inventory_service.adjust_stock(business["id"], beef["id"], -16)
    low = await inventory_service.list_low_stock(business["id"])
    assert [p["id"] for p in low] == [beef["id"]]


async def test_adjust_stock_unknown_product_is_skipped(business):
    assert await inventory_service.adjust_stock(business["id"], "p_missing", -1) is None


async def test_csv_import_reports_skipped_rows(business, beef):
    text = (
        "Name, SKU, Price, Cost, Stock, Category\n"
        "Chicken Braai Pack,CHK-01,75,40,12,Poultry\n"
        ",NO-NAME,10,5,1,Misc\n"
        "Duplicate Beef,BEEF-001,10,5,1,Meat\n"
    )
    result = await inventory_service.import_products_csv(business["id"], text)

    assert result["imported"] == 1
    assert result["skipped"] == 2
    assert result["errors"][0].startswith("Line 3")

    chicken = await inventory_service.list_products(business["id"], search="CHK-01")
    assert chicken[0]["stock_level"] == 12
    assert chicken[0]["category"] == "Poultry"


async def test_tenant_guard_blocks_global():
    with pytest.raises(TenantGuardError):
        await inventory_service.list_products("global")


async def test_customer_phone_validated(business):
    with pytest.raises(ValidationError):
        await customer_service.add_customer(business["id"], {"name": "Bad Phone", "phone": "12345"})


async def test_find_or_create_customer_is_case_insensitive(business, customer):
    found = await customer_service.find_or_create_customer(business["id"], "lerato mokoena")
    assert found["id"] == customer["id"]

    created = await customer_service.find_or_create_customer(business["id"], "New Person")
    assert created["credit_limit"] == 1000.0


async def test_customer_csv_import(business):
    result = await customer_service.import_customers_csv(
        business["id"], "name,phone,credit_limit\nKagiso,0731234567,750\n,0731234568,100\n"
    )
    assert result == {"imported": 1, "skipped": 1, "errors": ["Line 3: Customer name is required"]}

    customers = await customer_service.list_customers(business["id"], search="073")
    assert customers[0]["credit_limit"] == 750.0


async def test_branding_merges_overrides(db):
    await tenant_service.create_tenant({
        "id": "spaza-one", "name": "Spaza One", "type": "BUSINESS",
        "logo_url": "https://cdn.example.com/spaza.png", "branding": {"primary_color": "#ff0000"},
    })
    branding = await tenant_service.get_branding("spaza-one")
    assert branding["primary_color"] == "#ff0000"
    assert branding["logo_url"] == "https://cdn.example.com/spaza.png"
