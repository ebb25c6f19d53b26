from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreateTransactionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(..., alias="kunciEntri")
    data: Dict[str, Any] = Field(..., alias="dataBaru")

    @field_validator("key")
    @classmethod
    def validate_key(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("kunciEntri cannot be empty")
        if len(v) > 128:
            raise ValueError("kunciEntri is limited to 128 characters")
        return v


class StatusUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = Field(..., alias="statusBaru")


class AppConfigUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    branding_name: Optional[str] = Field(default=None, alias="brandingName")
    branding_handle: Optional[str] = Field(default=None, alias="brandingHandle")
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")
    cover_url: Optional[str] = Field(default=None, alias="coverUrl")
    target_goal: Optional[float] = Field(default=None, alias="targetGoal", ge=0)
    fee_percent: Optional[float] = Field(default=None, alias="feePercent", ge=0, le=1)
    payment_tolerance_percent: Optional[float] = Field(
        default=None, alias="paymentTolerancePercent", ge=0, le=1
    )
    payment_tolerance_min: Optional[float] = Field(default=None, alias="paymentToleranceMin", ge=0)
