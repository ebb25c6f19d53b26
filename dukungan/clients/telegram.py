from datetime import datetime
from html import escape
from typing import Any, Dict, Optional

import httpx
import structlog

from dukungan.config import Settings
from dukungan.services.money import format_rupiah, parse_amount

logger = structlog.get_logger(__name__)

TELEGRAM_API = "https://api.telegram.org"


def build_success_message(key: str, entry: Dict[str, Any], now: Optional[datetime] = None) -> str:
    """HTML body of the "support received" notification for one entry."""
    now = now or datetime.now()
    amount = format_rupiah(parse_amount(entry.get("harga_transaksi")))
    pesan = entry.get("pesan") or ""
    pesan_block = f"\n<b>Pesan</b>:\n<blockquote>{escape(pesan)}</blockquote>" if pesan else ""
    return (
        "<b>🎉 DUKUNGAN BERHASIL</b>\n"
        "───────────────\n"
        f"<b>ID</b>: <code>{escape(key)}</code>\n"
        f"<b>Nama</b>: {escape(entry.get('nama') or '-')}\n"
        f"<b>Jumlah</b>: {escape(amount)}\n"
        f"<b>Metode</b>: {escape(entry.get('metode_pembayaran_transaksi') or 'QRIS')}\n"
        f"{pesan_block}\n"
        f"<b>Waktu</b>: {escape(now.strftime('%d/%m/%Y %H.%M.%S'))}"
    )


class TelegramNotifier:
    """
    Best-effort bot notifications. Never raises: failures are logged and
    dropped, and a notifier without token or chat id does nothing.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        self.http = http
        self.token = settings.telegram_bot_token
        self.chat_id = settings.telegram_chat_id

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.chat_id)

    async def send(self, text: str, html: bool = False) -> bool:
        if not self.enabled:
            return False
        payload = {"chat_id": self.chat_id, "text": text, "disable_web_page_preview": True}
        if html:
            payload["parse_mode"] = "HTML"
        try:
            response = await self.http.post(
                f"{TELEGRAM_API}/bot{self.token}/sendMessage", json=payload
            )
        except httpx.HTTPError as e:
            logger.error("telegram_notify_exception", error=str(e))
            return False
        if response.is_error:
            logger.error("telegram_notify_failed", status=response.status_code, error=response.text)
            return False
        return True

    async def send_payment_success(self, key: str, entry: Dict[str, Any]) -> bool:
        sent = await self.send(build_success_message(key, entry), html=True)
        logger.info("payment_success_notified", key=key, sent=sent)
        return sent
