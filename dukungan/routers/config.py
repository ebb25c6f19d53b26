from fastapi import APIRouter, Depends, Query

from dukungan.dependencies import get_config_store
from dukungan.models import AppConfig
from dukungan.schemas.requests import AppConfigUpdateRequest
from dukungan.schemas.responses import ConfigSaveResponse, FeeQuote
from dukungan.services.app_config import AppConfigStore
from dukungan.services.money import service_fee

router = APIRouter()


@router.get("", response_model=AppConfig, response_model_by_alias=True)
def read_config(config_store: AppConfigStore = Depends(get_config_store)):
    return config_store.read()


@router.post("", response_model=ConfigSaveResponse)
def save_config(
    request: AppConfigUpdateRequest,
    config_store: AppConfigStore = Depends(get_config_store),
):
    """Merge the given fields over the stored configuration."""
    incoming = request.model_dump(by_alias=True, exclude_none=True)
    config = config_store.update(incoming)
    return ConfigSaveResponse(success=True, config=config.model_dump(by_alias=True))


@router.get("/quote", response_model=FeeQuote)
def quote(
    amount: int = Query(..., ge=1, description="Donation amount in rupiah"),
    config_store: AppConfigStore = Depends(get_config_store),
):
    """Service fee (rounded up) and total the payer is asked for."""
    fee = service_fee(amount, config_store.read().fee_percent)
    return FeeQuote(amount=amount, fee=fee, total=amount + fee)
