"""
Generates a sample transaction document (data.json) for local development.

The output can be committed to the data repository used by the GitHub store,
or inspected against the dashboard.

Distribution:
- 60% Berhasil, 20% Belum Bayar, 10% Di Proses, 10% Dibatalkan
- Amounts from the page presets plus custom amounts, service fee included
- Edge cases: empty message, goods entries, amounts with separators
"""
import argparse
import json
import math
import os
import random
import sys
from datetime import datetime, timedelta, timezone

# Allow running from project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dukungan.models import PaymentStatus

random.seed(42)

STATUSES = (
    [PaymentStatus.SUCCESS.value] * 60 +
    [PaymentStatus.UNPAID.value] * 20 +
    [PaymentStatus.PROCESSING.value] * 10 +
    [PaymentStatus.CANCELLED.value] * 10
)
PRESET_AMOUNTS = [1000, 5000, 10000, 25000, 50000, 100000]
NAMES = ["Budi", "Siti", "Agus", "Dewi", "Rina", "Joko", "Putri", "Anonim"]
MESSAGES = ["Semangat terus!", "Mantap bang", "Sukses selalu", ""]
FEE_PERCENT = 0.007

BASE_TIME = datetime(2024, 1, 15, 8, 0, 0, tzinfo=timezone.utc)


def _iso(dt):
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def make_entry(name, amount, status, created_at, kind="jasa", message=""):
    total = amount + int(math.ceil(amount * FEE_PERCENT))
    return {
        "penjual": "AutoFtBot69",
        "jenis": kind,
        "tanggal": _iso(created_at),
        "nama": name,
        "email": f"{name.lower()}@example.com",
        "pesan": message,
        "nama_transaksi": f"Dukungan dari {name}",
        "harga_transaksi": str(total),
        "metode_pembayaran_transaksi": "QRIS",
        "status_pembayaran_transaksi": status,
        "url_pambayaran": "",
        "kedaluwarsa": _iso(created_at + timedelta(minutes=5)),
    }


def generate_entries(count):
    entries = {}

    for i in range(count):
        created_at = BASE_TIME + timedelta(hours=random.uniform(0, 72))
        if random.random() < 0.8:
            amount = random.choice(PRESET_AMOUNTS)
        else:
            amount = random.randint(1000, 250000)
        entry = make_entry(
            random.choice(NAMES),
            amount,
            random.choice(STATUSES),
            created_at,
            message=random.choice(MESSAGES),
        )
        entries[f"dukungan-{int(created_at.timestamp() * 1000) + i}"] = entry

    # Edge cases: goods entry and a legacy amount with separators
    created_at = BASE_TIME + timedelta(days=4)
    goods = make_entry("Toko", 75000, PaymentStatus.SUCCESS.value, created_at, kind="produk")
    entries[f"dukungan-{int(created_at.timestamp() * 1000)}"] = goods

    created_at = BASE_TIME + timedelta(days=5)
    legacy = make_entry("Lama", 20000, PaymentStatus.UNPAID.value, created_at)
    legacy["harga_transaksi"] = "20.140"
    entries[f"dukungan-{int(created_at.timestamp() * 1000)}"] = legacy

    return entries


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--count", type=int, default=50)
    parser.add_argument("--output", default="data.json")
    args = parser.parse_args()

    entries = generate_entries(args.count)
    with open(args.output, "w", encoding="utf-8") as f:
        json.dump(entries, f, indent=2, ensure_ascii=False)

    print(f"Wrote {len(entries)} entries to {args.output}")
    print("\nStatus distribution:")
    counts = {}
    for entry in entries.values():
        status = entry["status_pembayaran_transaksi"]
        counts[status] = counts.get(status, 0) + 1
    for status, cnt in sorted(counts.items()):
        print(f"  {status}: {cnt}")


if __name__ == "__main__":
    main()
