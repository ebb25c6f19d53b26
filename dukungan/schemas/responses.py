from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateTransactionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    key: str = Field(..., alias="kunciEntri")
    url_pambayaran: str
    qris: str
    kedaluwarsa: str


class StatusUpdateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    updated_data: Dict[str, Any] = Field(..., alias="updatedData")


class PaymentCheckResponse(BaseModel):
    message: str
    match: bool


class TransactionSummary(BaseModel):
    total_entries: int
    total_collected: int
    target_goal: float
    progress_percent: float
    status_counts: Dict[str, int]


class ConfigSaveResponse(BaseModel):
    success: bool
    config: Dict[str, Any]


class FeeQuote(BaseModel):
    amount: int
    fee: int
    total: int


class ErrorResponse(BaseModel):
    message: str
    error: Optional[str] = None
