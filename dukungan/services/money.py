"""Rupiah amount helpers shared by the payment service and the notifier."""
import math
import re
from typing import Any

_NON_DIGITS = re.compile(r"[^0-9]")


def parse_amount(raw: Any) -> int:
    """
    Integer rupiah value of a stored or reported amount.

    Everything that is not a digit is dropped ("Rp 10.000" -> 10000), the
    same way the page and the mutation feed format amounts. Empty or
    digit-less input yields 0.
    """
    if raw is None:
        return 0
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return max(raw, 0)
    if isinstance(raw, float):
        return max(int(raw), 0)
    digits = _NON_DIGITS.sub("", str(raw))
    return int(digits) if digits else 0


def format_rupiah(amount: int) -> str:
    """10000 -> 'Rp 10.000' (id-ID grouping, no decimals)."""
    return "Rp " + f"{int(amount):,}".replace(",", ".")


def service_fee(amount: int, fee_percent: float) -> int:
    # round first so float noise (e.g. 70.00000000000001) does not add a rupiah
    return int(math.ceil(round(amount * fee_percent, 6)))
