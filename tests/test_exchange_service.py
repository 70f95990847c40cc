import httpx
import pytest

from inala.core.config import settings
from inala.core.exceptions import ValidationError
from inala.services import exchange_service as exchange_module
from inala.services.exchange_service import ExchangeService


@pytest.fixture
def rates_api(monkeypatch):
    """Routes the service's HTTP client to an in-process handler."""
    monkeypatch.setattr(settings, "EXCHANGE_RATE_API_URL", "https://rates.example.com/latest/ZAR")
    real_client = httpx.AsyncClient

    def install(handler):
        def client_factory(**kwargs):
            return real_client(transport=httpx.MockTransport(handler), **kwargs)
        monkeypatch.setattr(exchange_module.httpx, "AsyncClient", client_factory)

    return install


def test_convert_via_base_currency():
    service = ExchangeService()
    assert service.convert(100, "ZAR", "MZN") == 345.0
    assert service.convert(345, "MZN", "ZAR") == 100.0
    assert service.convert(10, "zar", "zar") == 10.0


def test_unknown_currency_rejected():
    with pytest.raises(ValidationError):
        ExchangeService().convert(1, "ZAR", "XYZ")


def test_portfolio_value():
    value = ExchangeService().portfolio_value(
        [{"amount": 100, "currency": "ZAR"}, {"amount": 345, "currency": "MZN"}], "ZAR"
    )
    assert value["currency"] == "ZAR"
    assert value["total"] == 200.0
    assert value["breakdown"] == {"ZAR": 100.0, "MZN": 100.0}


async def test_refresh_without_url_keeps_static(monkeypatch):
    monkeypatch.setattr(settings, "EXCHANGE_RATE_API_URL", None)
    service = ExchangeService()
    assert await service.refresh_rates() is False
    assert service.get_rates()["source"] == "static"


async def test_refresh_updates_known_currencies(rates_api):
    rates_api(lambda request: httpx.Response(200, json={
        "conversion_rates": {"ZAR": 1, "USD": 0.055, "XYZ": 9.0},
    }))
    service = ExchangeService()

    assert await service.refresh_rates() is True
    rates = service.get_rates()
    assert rates["source"] == "live"
    assert rates["rates"]["USD"] == 0.055
    assert "XYZ" not in rates["rates"]


async def test_refresh_failure_keeps_table(rates_api):
    rates_api(lambda request: httpx.Response(503))
    service = ExchangeService()
    before = service.get_rates()["rates"]

    assert await service.refresh_rates() is False
    assert service.get_rates()["rates"] == before
