"""
Shared pytest fixtures for all test modules.

The transaction store is the in-memory implementation (same optimistic
concurrency contract as the GitHub one), the mutation feed and the Telegram
notifier are AsyncMocks, and the app config lives in a tmp_path file.
"""
import pytest
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from dukungan.clients.memory_store import InMemoryTransactionStore
from dukungan.config import Settings
from dukungan.dependencies import (
    get_app_settings,
    get_config_store,
    get_mutation_source,
    get_notifier,
    get_store,
)
from dukungan.qris import crc16_ccitt
from dukungan.services.app_config import AppConfigStore


# A static merchant QRIS: point of initiation 11, country code tag before the
# merchant name, CRC field last.
STATIC_QRIS_BODY = (
    "000201"
    "010211"
    "26570011ID.DANA.WWW011893600915300000000102150000000000000000303UMI"
    "51440014ID.CO.QRIS.WWW0215ID10200000000000303UMI"
    "520489995303360"
    "5802ID"
    "5914DUKUNGAN TEST"
    "6013JAKARTA PUSAT"
    "610510340"
    "6304"
)
STATIC_QRIS = STATIC_QRIS_BODY + crc16_ccitt(STATIC_QRIS_BODY)


@pytest.fixture
def static_qris():
    return STATIC_QRIS


@pytest.fixture
def store():
    return InMemoryTransactionStore()


@pytest.fixture
def mutations():
    """Mutation records the mocked feed returns; tests mutate this list."""
    return []


@pytest.fixture
def mutation_source(mutations):
    m = AsyncMock()
    m.fetch_mutations = AsyncMock(return_value=mutations)
    m.source_name = "mock"
    return m


@pytest.fixture
def notifier():
    m = AsyncMock()
    m.send_payment_success = AsyncMock(return_value=True)
    return m


@pytest.fixture
def config_store(tmp_path):
    return AppConfigStore(str(tmp_path / "data" / "viaQris.json"))


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        data_statis_qris=STATIC_QRIS,
        store_backend="memory",
        payment_expiry_minutes=5,
    )


@pytest.fixture
def client(store, mutation_source, notifier, config_store, settings):
    """
    FastAPI TestClient with every collaborator dependency overridden.
    The TestClient is NOT used as a context manager so the lifespan hook
    (which builds real HTTP clients) is skipped.
    """
    from dukungan.main import app

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_mutation_source] = lambda: mutation_source
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_config_store] = lambda: config_store
    app.dependency_overrides[get_app_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers, not fixtures, so any test file can import and call them directly.
# ---------------------------------------------------------------------------
def make_entry(
    amount: str = "10070",
    status: str = "Belum Bayar",
    nama: str = "Budi",
    pesan: str = "Semangat!",
    mutasi_ref: Optional[str] = None,
) -> Dict[str, Any]:
    entry = {
        "penjual": "AutoFtBot69",
        "jenis": "jasa",
        "tanggal": "2024-01-15T10:00:00.000Z",
        "nama": nama,
        "email": "budi@example.com",
        "pesan": pesan,
        "nama_transaksi": f"Dukungan dari {nama}",
        "harga_transaksi": amount,
        "metode_pembayaran_transaksi": "QRIS",
        "status_pembayaran_transaksi": status,
        "url_pambayaran": "data:image/png;base64,AAAA",
        "kedaluwarsa": "2024-01-15T10:05:00.000Z",
    }
    if mutasi_ref:
        entry["mutasi_ref"] = mutasi_ref
    return entry


def seeded_store(entries: Dict[str, Dict[str, Any]]) -> InMemoryTransactionStore:
    return InMemoryTransactionStore(entries)


def credit(amount, **extra) -> Dict[str, Any]:
    record = {"type": "CR", "amount": str(amount)}
    record.update(extra)
    return record


def debit(amount, **extra) -> Dict[str, Any]:
    record = {"type": "DB", "amount": str(amount)}
    record.update(extra)
    return record
