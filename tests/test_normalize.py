from utils.normalize import normalize_record, is_credit_sale, is_voided, parse_csv
from utils.validation_utils import to_amount, validate_email, validate_period_format


def test_normalize_legacy_keys():
    record = normalize_record({
        "total": "45.50", "customerId": "c1", "clientName": "Mpho", "paymentMethod": "EFT",
        "createdAt": "2025-01-02",
    })
    assert record["amount"] == 45.5
    assert record["total"] == 45.5
    assert record["customer_id"] == "c1"
    assert record["customer_name"] == "Mpho"
    assert record["payment_method"] == "EFT"
    assert record["created_at"] == "2025-01-02"


def test_normalize_defaults():
    record = normalize_record({})
    assert record["amount"] == 0
    assert record["customer_name"] == "Unknown"
    assert record["payment_method"] == "CASH"
    assert record["created_at"]


def test_credit_sale_detection():
    assert is_credit_sale({"method": "CREDIT"})
    assert is_credit_sale({"paymentMethod": "Store Credit"})
    assert is_credit_sale({"method": "CASH", "status": "credit"})
    assert not is_credit_sale({"method": "CASH"})


def test_voided():
    assert is_voided({"status": "VOIDED"})
    assert is_voided({"status": "voided"})
    assert not is_voided({"status": "COMPLETED"})


def test_parse_csv_skips_blank_lines_and_pads():
    headers, rows = parse_csv("name,sku,price\n\nBread,BR-1,20\nMilk,MK-2\n")
    assert headers == ["name", "sku", "price"]
    assert rows == [
        {"name": "Bread", "sku": "BR-1", "price": "20"},
        {"name": "Milk", "sku": "MK-2", "price": ""},
    ]
    assert parse_csv("   \n") == ([], [])


def test_validation_helpers():
    assert to_amount("12.50") == 12.5
    assert to_amount("abc", 3) == 3
    assert validate_email("a@example.com")
    assert not validate_email("a@")
    assert validate_period_format("2025-03")
    assert not validate_period_format("2025-13")
