"""
Payment matching against the bank mutation feed.

Some settlement providers credit the merchant net of fees, so an exact
amount match is unreliable. A reported credit matches an expected amount
when it lies within a tolerance band:

    tolerance = max(minimum, floor(expected * percent))
    match     = |credit - expected| <= tolerance

The first matching credit wins. Mutations already used to settle another
entry (tracked by fingerprint) are skipped so one bank credit cannot mark two
pending entries as paid.
"""
import hashlib
import json
import math
from typing import Any, Dict, Iterable, List, Optional

from dukungan.services.money import parse_amount


CREDIT_TYPES = {"CR", "CREDIT"}

# Provider fields that already identify a mutation uniquely, checked in order
ID_FIELDS = ("id", "reference", "reff", "issuer_reff", "ref")


def payment_tolerance(expected: int, percent: float, minimum: float) -> int:
    return int(max(minimum, math.floor(expected * percent)))


def is_credit(mutation: Dict[str, Any]) -> bool:
    return str(mutation.get("type") or "").strip().upper() in CREDIT_TYPES


def amount_matches(reported: int, expected: int, tolerance: int) -> bool:
    return abs(reported - expected) <= tolerance


def mutation_fingerprint(mutation: Dict[str, Any]) -> str:
    for field in ID_FIELDS:
        value = mutation.get(field)
        if value not in (None, ""):
            return f"{field}:{value}"
    canonical = json.dumps(mutation, sort_keys=True, separators=(",", ":"), default=str)
    return "sha1:" + hashlib.sha1(canonical.encode("utf-8")).hexdigest()


def find_matching_credit(
    expected: int,
    mutations: List[Dict[str, Any]],
    percent: float,
    minimum: float,
    claimed: Iterable[str] = (),
) -> Optional[Dict[str, Any]]:
    """
    Return the first unclaimed credit mutation within tolerance of ``expected``.

    Args:
        expected: Amount the payer was asked to pay (rupiah)
        mutations: Records from the mutation feed, each with ``type`` and ``amount``
        percent: Tolerance as a fraction of ``expected`` (0.02 == 2%)
        minimum: Lower bound of the tolerance in rupiah
        claimed: Fingerprints of mutations that already settled an entry
    """
    tolerance = payment_tolerance(expected, percent, minimum)
    claimed = set(claimed)

    for mutation in mutations:
        if not isinstance(mutation, dict) or not is_credit(mutation):
            continue
        if not amount_matches(parse_amount(mutation.get("amount")), expected, tolerance):
            continue
        if mutation_fingerprint(mutation) in claimed:
            continue
        return mutation
    return None
