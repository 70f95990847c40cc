"""
inala/api/settings.py

Purpose: Platform settings and currency exchange endpoints
"""

from typing import Dict, Any

from fastapi import APIRouter, Depends, Query

from inala.api.deps import get_current_user, super_admin
from inala.core.config import settings
from inala.core.exceptions import ExternalServiceError
from inala.schemas.email import GlobalSettingsUpdate, PortfolioRequest
from inala.services import settings_service
from inala.services.exchange_service import exchange_service
from utils.constants import BASE_CURRENCY

router = APIRouter(tags=["settings"])


@router.get("/settings")
async def get_settings(user: Dict[str, Any] = Depends(get_current_user)):
    return await settings_service.get_global_settings()


@router.patch("/settings")
async def update_settings(body: GlobalSettingsUpdate, user: Dict[str, Any] = Depends(super_admin)):
    return await settings_service.update_global_settings(body.model_dump(mode="json", exclude_none=True))


@router.get("/exchange/rates")
async def exchange_rates():
    return exchange_service.get_rates()


@router.get("/exchange/convert")
async def convert(
    amount: float = Query(...),
    from_currency: str = Query(BASE_CURRENCY, alias="from"),
    to_currency: str = Query(BASE_CURRENCY, alias="to")
):
    return {
        "amount": amount,
        "from": from_currency.upper(),
        "to": to_currency.upper(),
        "result": exchange_service.convert(amount, from_currency, to_currency),
    }


@router.post("/exchange/portfolio")
async def portfolio(body: PortfolioRequest):
    return exchange_service.portfolio_value([h.model_dump() for h in body.holdings], body.to_currency)


@router.post("/exchange/refresh")
async def refresh_rates(user: Dict[str, Any] = Depends(super_admin)):
    refreshed = await exchange_service.refresh_rates()
    if settings.EXCHANGE_RATE_API_URL and not refreshed:
        raise ExternalServiceError("Exchange rate feed unavailable, static rates kept")
    return {"refreshed": refreshed, **exchange_service.get_rates()}
