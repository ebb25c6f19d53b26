import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PaymentStatus(str, Enum):
    UNPAID = "Belum Bayar"
    PROCESSING = "Di Proses"
    SUCCESS = "Berhasil"
    CANCELLED = "Dibatalkan"


class EntryKind(str, Enum):
    GOODS = "produk"
    SERVICE = "jasa"


class TransactionEntry(BaseModel):
    """
    One donation/transaction as stored in the JSON document.

    Field names match the stored document so existing data files keep
    loading; unknown fields are carried through untouched.
    """

    model_config = ConfigDict(extra="allow", use_enum_values=True)

    penjual: str = ""
    jenis: EntryKind = EntryKind.SERVICE
    tanggal: str = ""
    nama: str = ""
    email: str = ""
    pesan: str = ""
    nama_transaksi: str = ""
    harga_transaksi: str = "0"
    metode_pembayaran_transaksi: str = "QRIS"
    status_pembayaran_transaksi: PaymentStatus = PaymentStatus.UNPAID
    url_pambayaran: str = ""
    kedaluwarsa: str = ""
    mutasi_ref: Optional[str] = None

    @field_validator("harga_transaksi", mode="before")
    @classmethod
    def amount_as_string(cls, v):
        # Stored as a string; pages may post a JSON number
        if isinstance(v, bool):
            return v
        if isinstance(v, int):
            return str(v)
        if isinstance(v, float):
            return str(int(v)) if math.isfinite(v) else v
        return v


class AppConfig(BaseModel):
    """Branding and payment knobs; stored with the camelCase keys the page reads."""

    model_config = ConfigDict(populate_by_name=True)

    branding_name: str = Field(default="AutoFtBot69", alias="brandingName")
    branding_handle: str = Field(default="@AutoFtBot69", alias="brandingHandle")
    avatar_url: str = Field(default="/gambar.jpg", alias="avatarUrl")
    cover_url: str = Field(default="/viaQris.jpg", alias="coverUrl")
    target_goal: float = Field(default=1000000, alias="targetGoal")
    fee_percent: float = Field(default=0.007, alias="feePercent")  # 0.007 == 0.7%
    payment_tolerance_percent: float = Field(default=0.02, alias="paymentTolerancePercent")
    payment_tolerance_min: float = Field(default=100, alias="paymentToleranceMin")
