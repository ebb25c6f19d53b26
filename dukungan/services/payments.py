"""
Donation transaction service.

Every operation is one read-modify-write cycle against the transaction
store:
1. Read the full mapping and its version token
2. Apply the change to one entry
3. Write the full mapping back, guarded by the token read in step 1

A concurrent writer makes step 3 fail with VersionConflict; nothing here
retries, the caller is told to reload. Notifications are not sent from
here: results carry a `notify` flag and the caller schedules the send.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from dukungan.clients.base import BaseMutationSource, BaseTransactionStore
from dukungan.clients.telegram import TelegramNotifier
from dukungan.errors import EntryNotFound, ValidationError
from dukungan.models import AppConfig, PaymentStatus, TransactionEntry
from dukungan.qris import build_qris_payload, render_qr_data_url
from dukungan.services.matching import find_matching_credit, mutation_fingerprint
from dukungan.services.money import parse_amount

logger = structlog.get_logger(__name__)

STATUS_FIELD = "status_pembayaran_transaksi"


class CreateResult:
    def __init__(self, key: str, entry: Dict[str, Any], qris: str, commit_url: Optional[str]):
        self.key = key
        self.entry = entry
        self.qris = qris
        self.commit_url = commit_url

    @property
    def payment_url(self) -> str:
        return self.entry["url_pambayaran"]


class StatusChange:
    def __init__(self, key: str, entry: Dict[str, Any], previous_status: str, notify: bool):
        self.key = key
        self.entry = entry
        self.previous_status = previous_status
        self.notify = notify


class PaymentCheck:
    def __init__(
        self,
        key: str,
        match: bool,
        entry: Dict[str, Any],
        mutation: Optional[Dict[str, Any]] = None,
        notify: bool = False,
    ):
        self.key = key
        self.match = match
        self.entry = entry
        self.mutation = mutation
        self.notify = notify


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_status(value: Any) -> PaymentStatus:
    try:
        return PaymentStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in PaymentStatus)
        raise ValidationError("Invalid status value", detail=f"expected one of: {allowed}")


def _require_entry(entries: Dict[str, Dict[str, Any]], key: str) -> Dict[str, Any]:
    entry = entries.get(key)
    if not isinstance(entry, dict):
        raise EntryNotFound(f"Entry '{key}' not found")
    return entry


async def list_transactions(store: BaseTransactionStore) -> Dict[str, Dict[str, Any]]:
    snapshot = await store.read_all()
    return snapshot.entries


async def create_transaction(
    store: BaseTransactionStore,
    key: str,
    data: Dict[str, Any],
    qris_template: str,
    expiry_minutes: int = 5,
    now: Optional[datetime] = None,
) -> CreateResult:
    """
    Create an unpaid entry with a freshly generated dynamic QRIS image.

    Raises:
        ValidationError: missing key, malformed entry, non-positive amount or
            a key that already exists
        FormatError: the configured static QRIS is unusable
        VersionConflict / RemoteUnavailable: from the store
    """
    key = (key or "").strip()
    if not key:
        raise ValidationError("kunciEntri and dataBaru are required")

    try:
        entry = TransactionEntry.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Invalid transaction data", detail=str(e)) from e

    amount = parse_amount(entry.harga_transaksi)
    if amount <= 0:
        raise ValidationError("harga_transaksi must be a positive amount")

    # Encode before touching the store so a bad template has no side effect
    qris = build_qris_payload(qris_template, amount)

    snapshot = await store.read_all()
    if key in snapshot.entries:
        raise ValidationError(f"Entry '{key}' already exists")

    now = now or _now()
    entry.harga_transaksi = str(amount)
    entry.status_pembayaran_transaksi = PaymentStatus.UNPAID
    entry.mutasi_ref = None
    if not entry.tanggal:
        entry.tanggal = _isoformat(now)
    if not entry.kedaluwarsa:
        entry.kedaluwarsa = _isoformat(now + timedelta(minutes=expiry_minutes))
    entry.url_pambayaran = render_qr_data_url(qris)

    stored = entry.model_dump(mode="json", exclude_none=True)
    entries = {**snapshot.entries, key: stored}
    result = await store.write(entries, snapshot.sha, f"Create data.json: {key}.")

    logger.info("transaction_created", key=key, amount=amount)
    return CreateResult(key=key, entry=stored, qris=qris, commit_url=result.commit_url)


async def update_status(store: BaseTransactionStore, key: str, new_status: Any) -> StatusChange:
    """
    Operator status change. Any status may be set from any other; moving
    into Berhasil from a different status asks for one notification.
    """
    if not key or not new_status:
        raise ValidationError("kunciEntri and statusBaru are required")
    status = _parse_status(new_status)

    snapshot = await store.read_all()
    entry = _require_entry(snapshot.entries, key)
    previous = entry.get(STATUS_FIELD, "")

    entry[STATUS_FIELD] = status.value
    await store.write(snapshot.entries, snapshot.sha, f"Update status to '{status.value}' for {key}.")

    notify = status == PaymentStatus.SUCCESS and previous != PaymentStatus.SUCCESS.value
    logger.info("transaction_status_updated", key=key, previous=previous, status=status.value)
    return StatusChange(key=key, entry=entry, previous_status=previous, notify=notify)


async def check_payment(
    store: BaseTransactionStore,
    source: BaseMutationSource,
    key: str,
    config: AppConfig,
) -> PaymentCheck:
    """
    Look for an inbound credit settling ``key`` and mark the entry paid.

    Mutations already recorded as settling another entry are not reused.
    """
    if not key:
        raise ValidationError("kunciEntri is required")

    snapshot = await store.read_all()
    entry = _require_entry(snapshot.entries, key)
    status = entry.get(STATUS_FIELD)

    if status == PaymentStatus.SUCCESS.value:
        return PaymentCheck(key=key, match=True, entry=entry)
    if status == PaymentStatus.CANCELLED.value:
        raise ValidationError(f"Entry '{key}' was cancelled")

    expected = parse_amount(entry.get("harga_transaksi"))
    mutations = await source.fetch_mutations()

    claimed = {
        e.get("mutasi_ref")
        for e in snapshot.entries.values()
        if isinstance(e, dict) and e.get("mutasi_ref")
    }
    mutation = find_matching_credit(
        expected,
        mutations,
        config.payment_tolerance_percent,
        config.payment_tolerance_min,
        claimed=claimed,
    )
    if mutation is None:
        logger.info("payment_not_found", key=key, expected=expected, mutations=len(mutations))
        return PaymentCheck(key=key, match=False, entry=entry)

    entry[STATUS_FIELD] = PaymentStatus.SUCCESS.value
    entry["mutasi_ref"] = mutation_fingerprint(mutation)
    await store.write(snapshot.entries, snapshot.sha, f"Auto mark paid for {key}.")

    logger.info("payment_detected", key=key, expected=expected, reported=mutation.get("amount"),
                source=source.source_name)
    return PaymentCheck(key=key, match=True, entry=entry, mutation=mutation, notify=True)


async def notify_payment_success(notifier: TelegramNotifier, key: str, entry: Dict[str, Any]) -> None:
    """Background task body: a failed notification is logged and dropped."""
    try:
        await notifier.send_payment_success(key, entry)
    except Exception:
        logger.exception("payment_notification_failed", key=key)


def summarize(entries: Dict[str, Dict[str, Any]], target_goal: float) -> Dict[str, Any]:
    """Collected total (successful entries only) and entry count per status."""
    counts = {status.value: 0 for status in PaymentStatus}
    collected = 0
    for entry in entries.values():
        if not isinstance(entry, dict):
            continue
        status = entry.get(STATUS_FIELD, "")
        if status in counts:
            counts[status] += 1
        if status == PaymentStatus.SUCCESS.value:
            collected += parse_amount(entry.get("harga_transaksi"))

    progress = round(min(collected / target_goal * 100, 100.0), 2) if target_goal > 0 else 0.0
    return {
        "total_entries": sum(1 for e in entries.values() if isinstance(e, dict)),
        "total_collected": collected,
        "target_goal": target_goal,
        "progress_percent": progress,
        "status_counts": counts,
    }
