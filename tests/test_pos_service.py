from datetime import datetime, timezone

import pytest

from inala.core.exceptions import (
    BusinessRuleError, PermissionDeniedError, ValidationError, ResourceNotFoundError,
)
from inala.db.mongo import AUDIT_LOGS
from inala.services import pos_service, customer_service, inventory_service
from inala.services.pos_service import Cart


def test_cart_merges_lines_and_computes_vat():
    cart = Cart()
    product = {"id": "p1", "name": "Bread", "sku": "BR-1", "price": 20, "cost": 12}
    cart.add_item(product, 2)
    cart.add_item(product, 1)

    assert len(cart.items) == 1
    assert cart.items[0]["quantity"] == 3
    assert cart.totals(0.15) == {"subtotal": 60.0, "tax": 9.0, "total": 69.0}


def test_cart_drops_line_at_zero_quantity():
    cart = Cart()
    cart.add_item({"id": "p1", "price": 10}, 1)
    cart.update_quantity("p1", -1)
    assert cart.is_empty


def test_cart_rejects_non_positive_quantity():
    with pytest.raises(ValidationError):
        Cart().add_item({"id": "p1", "price": 10}, 0)


async def test_cash_checkout_decrements_stock(business, beef):
    tx = await pos_service.checkout(
        business["id"], [{"product_id": beef["id"], "quantity": 2}], "CASH", vat_rate=0.15
    )

    assert tx["type"] == "SALE"
    assert tx["amount"] == 230.0
    assert tx["subtotal"] == 200.0
    assert tx["customer_id"] == "walk_in"
    assert tx["reference"] == "INV-0001"

    product = await inventory_service.get_product(business["id"], beef["id"])
    assert product["stock_level"] == 18


async def test_credit_checkout_requires_customer(business, beef):
    with pytest.raises(BusinessRuleError, match="select a customer"):
        await pos_service.checkout(business["id"], [{"product_id": beef["id"], "quantity": 1}], "CREDIT")


async def test_credit_checkout_books_debt(business, beef, customer):
    tx = await pos_service.checkout(
        business["id"], [{"product_id": beef["id"], "quantity": 1}], "CREDIT",
        customer_id=customer["id"], vat_rate=0,
    )
    assert tx["customer_name"] == "Lerato Mokoena"

    updated = await customer_service.get_customer(business["id"], customer["id"])
    assert updated["current_debt"] == 100.0
    assert updated["total_credit"] == 100.0
    assert updated["sales_count"] == 1


async def test_debt_payment_never_goes_negative(business, customer):
    await customer_service.apply_credit_sale(business["id"], customer["id"], 50)
    await pos_service.record_debt_payment(business["id"], customer["id"], 80, received_by="Sipho")

    updated = await customer_service.get_customer(business["id"], customer["id"])
    assert updated["current_debt"] == 0


async def test_void_requires_admin(business, beef, cashier):
    tx = await pos_service.checkout(business["id"], [{"product_id": beef["id"], "quantity": 1}], "CASH")
    with pytest.raises(PermissionDeniedError):
        await pos_service.void_transaction(business["id"], tx["id"], cashier, "wrong item")


async def test_void_reverses_credit_sale_and_restocks(db, business, beef, customer, admin):
    tx = await pos_service.checkout(
        business["id"], [{"product_id": beef["id"], "quantity": 3}], "CREDIT",
        customer_id=customer["id"], vat_rate=0,
    )

    voided = await pos_service.void_transaction(business["id"], tx["id"], admin, "duplicate ring-up")
    assert voided["status"] == "VOIDED"
    assert voided["void_reason"] == "duplicate ring-up"

    updated = await customer_service.get_customer(business["id"], customer["id"])
    assert updated["current_debt"] == 0
    product = await inventory_service.get_product(business["id"], beef["id"])
    assert product["stock_level"] == 20

    audit = await db[AUDIT_LOGS].find_one({"entity_id": tx["id"]})
    assert audit["action"] == "TRANSACTION_VOID"

    with pytest.raises(BusinessRuleError):
        await pos_service.void_transaction(business["id"], tx["id"], admin, "again")


async def test_voided_debt_payment_restores_debt(business, customer, admin):
    await customer_service.apply_credit_sale(business["id"], customer["id"], 200)
    payment = await pos_service.record_debt_payment(business["id"], customer["id"], 150)

    await pos_service.void_transaction(business["id"], payment["id"], admin, "bounced EFT")

    updated = await customer_service.get_customer(business["id"], customer["id"])
    assert updated["current_debt"] == 200.0


async def test_voiding_an_overpayment_restores_only_the_cleared_debt(business, customer, admin):
    await customer_service.apply_credit_sale(business["id"], customer["id"], 30)
    payment = await pos_service.record_debt_payment(business["id"], customer["id"], 50)
    assert payment["debt_applied"] == 30.0

    await pos_service.void_transaction(business["id"], payment["id"], admin, "paid twice")

    updated = await customer_service.get_customer(business["id"], customer["id"])
    assert updated["current_debt"] == 30.0


async def test_payment_without_debt_voids_to_zero(business, customer, admin):
    payment = await pos_service.record_debt_payment(business["id"], customer["id"], 25)
    assert payment["debt_applied"] == 0

    await pos_service.void_transaction(business["id"], payment["id"], admin, "wrong account")

    updated = await customer_service.get_customer(business["id"], customer["id"])
    assert updated["current_debt"] == 0


async def test_entry_for_unknown_account_is_not_written(business):
    with pytest.raises(ResourceNotFoundError):
        await pos_service.add_transaction(business["id"], {
            "type": "DEBT_PAYMENT", "amount": 40, "customer_id": "c_missing",
        })
    with pytest.raises(ResourceNotFoundError):
        await pos_service.add_transaction(business["id"], {
            "type": "SALE", "amount": 40, "method": "CREDIT", "customer_id": "c_missing",
        })

    assert await pos_service.list_transactions(business["id"]) == []


async def test_failed_balance_effect_rolls_back_entry(business, customer, monkeypatch):
    async def broken_payment(*args, **kwargs):
        raise RuntimeError("write conflict")

    monkeypatch.setattr(customer_service, "apply_debt_payment", broken_payment)

    with pytest.raises(RuntimeError):
        await pos_service.record_debt_payment(business["id"], customer["id"], 40)

    assert await pos_service.list_transactions(business["id"]) == []


async def test_request_void_leaves_balances(business, beef, cashier):
    tx = await pos_service.checkout(business["id"], [{"product_id": beef["id"], "quantity": 1}], "CASH")
    flagged = await pos_service.request_void(business["id"], tx["id"], cashier, "customer returned it")

    assert flagged["void_requested"] is True
    assert flagged["status"] == "COMPLETED"


async def test_adjust_sale_moves_credit_by_difference(business, beef, customer, admin):
    tx = await pos_service.checkout(
        business["id"], [{"product_id": beef["id"], "quantity": 2}], "CREDIT",
        customer_id=customer["id"], vat_rate=0,
    )

    adjusted = await pos_service.adjust_sale(business["id"], tx["id"], {"amount": 150}, admin, "discount")
    assert adjusted["amount"] == 150.0
    assert adjusted["original_amount"] == 200.0
    assert len(adjusted["adjustments"]) == 1

    updated = await customer_service.get_customer(business["id"], customer["id"])
    assert updated["current_debt"] == 150.0


async def test_adjust_credit_sale_to_cash_clears_debt(business, beef, customer, admin):
    tx = await pos_service.checkout(
        business["id"], [{"product_id": beef["id"], "quantity": 1}], "CREDIT",
        customer_id=customer["id"], vat_rate=0,
    )
    await pos_service.adjust_sale(business["id"], tx["id"], {"method": "CASH"}, admin, "paid at till")

    updated = await customer_service.get_customer(business["id"], customer["id"])
    assert updated["current_debt"] == 0


async def test_list_transactions_newest_first_and_filtered(business, beef, customer):
    await pos_service.add_transaction(business["id"], {
        "type": "SALE", "amount": 10, "timestamp": "2025-01-10T09:00:00",
    })
    await pos_service.add_transaction(business["id"], {
        "type": "SALE", "amount": 20, "timestamp": "2025-02-10T09:00:00",
    })
    await pos_service.record_debt_payment(business["id"], customer["id"], 5, date="2025-02-11T09:00:00")

    sales = await pos_service.list_transactions(business["id"], tx_type="SALE")
    assert [s["amount"] for s in sales] == [20.0, 10.0]

    everything = await pos_service.list_transactions(business["id"])
    assert everything[0]["type"] == "DEBT_PAYMENT"


async def test_list_transactions_accepts_aware_and_open_bounds(business):
    await pos_service.add_transaction(business["id"], {
        "type": "SALE", "amount": 10, "timestamp": "2025-01-10T09:00:00",
    })
    await pos_service.add_transaction(business["id"], {
        "type": "SALE", "amount": 20, "timestamp": "2025-02-10T09:00:00",
    })

    aware = await pos_service.list_transactions(
        business["id"],
        start=datetime(2025, 2, 1, tzinfo=timezone.utc),
        end=datetime(2025, 3, 1, tzinfo=timezone.utc),
    )
    assert [t["amount"] for t in aware] == [20.0]

    since = await pos_service.list_transactions(business["id"], start=datetime(2025, 2, 1))
    assert [t["amount"] for t in since] == [20.0]

    until = await pos_service.list_transactions(business["id"], end=datetime(2025, 2, 1))
    assert [t["amount"] for t in until] == [10.0]


async def test_list_transactions_rejects_unknown_type(business):
    with pytest.raises(ValidationError, match="Unknown transaction type"):
        await pos_service.list_transactions(business["id"], tx_type="BOGUS")
