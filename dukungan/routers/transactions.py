from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Depends

from dukungan.clients.base import BaseMutationSource, BaseTransactionStore
from dukungan.clients.telegram import TelegramNotifier
from dukungan.config import Settings
from dukungan.dependencies import (
    get_app_settings,
    get_config_store,
    get_mutation_source,
    get_notifier,
    get_store,
)
from dukungan.schemas.requests import CreateTransactionRequest, StatusUpdateRequest
from dukungan.schemas.responses import (
    CreateTransactionResponse,
    PaymentCheckResponse,
    StatusUpdateResponse,
    TransactionSummary,
)
from dukungan.services import payments
from dukungan.services.app_config import AppConfigStore

router = APIRouter()


@router.get("", response_model=Dict[str, Any])
async def list_transactions(store: BaseTransactionStore = Depends(get_store)):
    """All stored entries keyed by transaction key; an empty store returns {}."""
    return await payments.list_transactions(store)


@router.get("/summary", response_model=TransactionSummary)
async def summary(
    store: BaseTransactionStore = Depends(get_store),
    config_store: AppConfigStore = Depends(get_config_store),
):
    entries = await payments.list_transactions(store)
    return payments.summarize(entries, config_store.read().target_goal)


@router.post("", response_model=CreateTransactionResponse)
async def create_transaction(
    request: CreateTransactionRequest,
    store: BaseTransactionStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """
    Create an unpaid donation entry.

    - Embeds the amount into the configured static QRIS (tag 54 + new CRC)
    - Renders the dynamic QRIS as a PNG data URL
    - Saves the entry with a write guarded by the store's version token

    Returns the payment image so the page can show it right away.
    """
    result = await payments.create_transaction(
        store,
        request.key,
        request.data,
        settings.data_statis_qris,
        expiry_minutes=settings.payment_expiry_minutes,
    )
    return CreateTransactionResponse(
        message=f"Data for '{result.key}' processed successfully!",
        key=result.key,
        url_pambayaran=result.payment_url,
        qris=result.qris,
        kedaluwarsa=result.entry["kedaluwarsa"],
    )


@router.post("/{key}/status", response_model=StatusUpdateResponse)
async def update_status(
    key: str,
    request: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    store: BaseTransactionStore = Depends(get_store),
    notifier: TelegramNotifier = Depends(get_notifier),
):
    """Operator status change. Setting Berhasil sends one Telegram notification."""
    change = await payments.update_status(store, key, request.status)
    if change.notify:
        background_tasks.add_task(payments.notify_payment_success, notifier, key, change.entry)
    return StatusUpdateResponse(
        message=f"Status for '{key}' changed successfully.",
        updated_data=change.entry,
    )


@router.post("/{key}/check-payment", response_model=PaymentCheckResponse)
async def check_payment(
    key: str,
    background_tasks: BackgroundTasks,
    store: BaseTransactionStore = Depends(get_store),
    source: BaseMutationSource = Depends(get_mutation_source),
    notifier: TelegramNotifier = Depends(get_notifier),
    config_store: AppConfigStore = Depends(get_config_store),
):
    """
    Poll the bank mutation feed for a credit matching this entry's amount
    (within the configured tolerance) and mark it Berhasil when found.
    """
    check = await payments.check_payment(store, source, key, config_store.read())
    if not check.match:
        return PaymentCheckResponse(message="No incoming payment found yet.", match=False)

    if check.notify:
        background_tasks.add_task(payments.notify_payment_success, notifier, key, check.entry)
        return PaymentCheckResponse(message="Payment detected. Status marked Berhasil.", match=True)
    return PaymentCheckResponse(message="Payment already confirmed.", match=True)
