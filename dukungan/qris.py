"""
QRIS payload encoder.

A merchant's static QRIS is a TLV string (EMVCo merchant-presented mode):

    00 02 01 | 01 02 11 | 26 .. merchant account | ... | 58 02 ID | ... | 63 04 XXXX

Turning it into a single-amount (dynamic) code means:
  1. dropping the old CRC value (last 4 chars, the "6304" header stays),
  2. switching the point-of-initiation tag 01 from "11" (static) to "12" (dynamic),
  3. inserting tag 54 (transaction amount) right before the country code tag 58,
  4. recomputing CRC-16/CCITT-FALSE over everything and appending it.
"""
import base64
import math
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_H

from dukungan.errors import FormatError


STATIC_INITIATION = "010211"
DYNAMIC_INITIATION = "010212"
COUNTRY_CODE_TAG = "5802ID"
CRC_TAG = "6304"
AMOUNT_TAG_ID = "54"


def crc16_ccitt(data: str) -> str:
    """CRC-16/CCITT-FALSE (poly 0x1021, init 0xFFFF, no final XOR) as 4 uppercase hex digits."""
    crc = 0xFFFF
    for char in data:
        crc ^= ord(char) << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = (crc << 1) ^ 0x1021
            else:
                crc <<= 1
            crc &= 0xFFFF
    return format(crc, "04X")


def _amount_digits(amount) -> str:
    try:
        value = math.floor(max(0, amount))
    except (TypeError, ValueError, OverflowError):
        raise FormatError("Amount must be a finite number", detail=repr(amount))
    return str(int(value))


def amount_tag(amount) -> str:
    """TLV tag 54 for the given amount, e.g. 10000 -> '540510000'."""
    digits = _amount_digits(amount)
    if len(digits) > 99:
        raise FormatError("Amount too long for a QRIS amount field")
    return f"{AMOUNT_TAG_ID}{len(digits):02d}{digits}"


def build_qris_payload(static_template: str, amount) -> str:
    """
    Build a dynamic QRIS payload carrying ``amount`` from a static template.

    Raises:
        FormatError: template empty, missing the country code tag, or not
            ending in a CRC field.
    """
    if not static_template:
        raise FormatError("Static QRIS data not found")
    if COUNTRY_CODE_TAG not in static_template:
        raise FormatError("Invalid static QRIS format (country code tag 58 not found)")
    if len(static_template) < 8 or static_template[-8:-4] != CRC_TAG:
        raise FormatError("Invalid static QRIS format (CRC field 63 not found at the end)")

    without_crc = static_template[:-4].replace(STATIC_INITIATION, DYNAMIC_INITIATION, 1)

    country_pos = without_crc.find(COUNTRY_CODE_TAG)
    if country_pos == -1:
        raise FormatError("Invalid static QRIS format (country code tag 58 not found)")

    tag = amount_tag(amount)
    with_amount = without_crc[:country_pos] + tag + without_crc[country_pos:]
    return with_amount + crc16_ccitt(with_amount)


def verify_checksum(payload: str) -> bool:
    if not payload or len(payload) < 4:
        return False
    return payload[-4:].upper() == crc16_ccitt(payload[:-4])


def render_qr_data_url(payload: str) -> str:
    """Render ``payload`` as a PNG QR code and return it as a data URL."""
    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_H,
        box_size=8,
        border=4,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, format="PNG")
    encoded = base64.b64encode(buffered.getvalue()).decode()
    return f"data:image/png;base64,{encoded}"
