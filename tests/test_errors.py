from fastapi.testclient import TestClient
from pydantic import BaseModel

from inala.main import app
from inala.core.exceptions import ResourceNotFoundError, BusinessRuleError

client = TestClient(app)


class Item(BaseModel):
    name: str
    price: int


@app.post("/test-validation")
def create_item(item: Item):
    return item


@app.get("/test-custom-error")
def trigger_custom_error():
    raise ResourceNotFoundError(message="Item not found")


@app.get("/test-business-rule")
def trigger_business_rule():
    raise BusinessRuleError("Loan is not awaiting approval", details={"loan_id": "loan_1"})


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert "error" in data
    assert "code" in data
    assert data["code"] == "HTTP_ERROR"


def test_validation_error_structure():
    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert "details" in data
    assert len(data["details"]) > 0


def test_custom_exception():
    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "NOT_FOUND"
    assert data["error"] == "Item not found"


def test_business_rule_maps_to_conflict():
    response = client.get("/test-business-rule")
    assert response.status_code == 409
    data = response.json()
    assert data["code"] == "BUSINESS_RULE_VIOLATION"
    assert data["details"] == {"loan_id": "loan_1"}
