"""
Pure unit tests for dukungan/qris.py.

Covers: CRC-16/CCITT-FALSE check values, dynamic payload construction
(initiation switch, tag 54 placement and value, checksum), template
validation and QR rendering.
"""
import base64
import re

import pytest

from dukungan.errors import FormatError
from dukungan.qris import (
    amount_tag,
    build_qris_payload,
    crc16_ccitt,
    render_qr_data_url,
    verify_checksum,
)
from tests.conftest import STATIC_QRIS, STATIC_QRIS_BODY


def _tag54_value(payload: str) -> str:
    """Value of the tag 54 that sits right before 5802ID."""
    pos = payload.index("5802ID")
    prefix = payload[:pos]
    m = re.search(r"54(\d{2})(\d+)$", prefix)
    assert m is not None
    length, value = int(m.group(1)), m.group(2)
    assert len(value) == length
    return value


# ---------------------------------------------------------------------------
# crc16_ccitt()
# ---------------------------------------------------------------------------
class TestCrc16:
    def test_standard_check_value(self):
        # CRC-16/CCITT-FALSE catalogue check value
        assert crc16_ccitt("123456789") == "29B1"

    def test_empty_string_is_initial_value(self):
        assert crc16_ccitt("") == "FFFF"

    def test_is_four_uppercase_hex_digits(self):
        for data in ["A", "0002010102", STATIC_QRIS_BODY]:
            assert re.fullmatch(r"[0-9A-F]{4}", crc16_ccitt(data))


# ---------------------------------------------------------------------------
# amount_tag()
# ---------------------------------------------------------------------------
class TestAmountTag:
    def test_length_prefix_is_zero_padded(self):
        assert amount_tag(10000) == "540510000"

    def test_single_digit(self):
        assert amount_tag(7) == "54017"

    def test_zero(self):
        assert amount_tag(0) == "54010"

    def test_fraction_is_floored(self):
        assert amount_tag(10070.99) == "540510070"

    def test_negative_is_clamped_to_zero(self):
        assert amount_tag(-500) == "54010"

    def test_non_finite_rejected(self):
        with pytest.raises(FormatError):
            amount_tag(float("inf"))


# ---------------------------------------------------------------------------
# build_qris_payload()
# ---------------------------------------------------------------------------
class TestBuildQrisPayload:
    def test_output_ends_with_valid_checksum(self):
        payload = build_qris_payload(STATIC_QRIS, 10000)
        assert re.fullmatch(r"[0-9A-F]{4}", payload[-4:])
        assert payload[-4:] == crc16_ccitt(payload[:-4])

    @pytest.mark.parametrize("amount", [0, 1, 999, 10070, 1500000, 123456789])
    def test_checksum_valid_for_many_amounts(self, amount):
        assert verify_checksum(build_qris_payload(STATIC_QRIS, amount))

    def test_static_indicator_becomes_dynamic(self):
        payload = build_qris_payload(STATIC_QRIS, 10000)
        assert "010212" in payload
        assert payload.startswith("000201010212")

    def test_tag54_inserted_right_before_country_code(self):
        payload = build_qris_payload(STATIC_QRIS, 10000)
        assert "5405100005802ID" in payload

    def test_rest_of_template_preserved(self):
        payload = build_qris_payload(STATIC_QRIS, 10000)
        expected_body = STATIC_QRIS_BODY.replace("010211", "010212", 1).replace(
            "5802ID", "540510000" + "5802ID"
        )
        assert payload[:-4] == expected_body

    def test_crc_header_kept_before_new_checksum(self):
        payload = build_qris_payload(STATIC_QRIS, 10000)
        assert payload[-8:-4] == "6304"

    @pytest.mark.parametrize("amount,digits", [
        (10000, "10000"),
        (10000.9, "10000"),
        (-1, "0"),
        (0, "0"),
        (5, "5"),
    ])
    def test_tag54_value_is_floored_clamped_amount(self, amount, digits):
        assert _tag54_value(build_qris_payload(STATIC_QRIS, amount)) == digits

    def test_already_dynamic_template_keeps_indicator(self):
        body = STATIC_QRIS_BODY.replace("010211", "010212")
        template = body + crc16_ccitt(body)
        payload = build_qris_payload(template, 2500)
        assert payload.count("010212") == 1
        assert verify_checksum(payload)

    def test_template_not_mutated(self):
        template = str(STATIC_QRIS)
        build_qris_payload(template, 10000)
        assert template == STATIC_QRIS

    def test_deterministic(self):
        assert build_qris_payload(STATIC_QRIS, 4321) == build_qris_payload(STATIC_QRIS, 4321)

    def test_old_checksum_value_ignored(self):
        # Wrong stored CRC still produces a valid payload: only the header matters
        broken = STATIC_QRIS[:-4] + "0000"
        assert build_qris_payload(broken, 10000) == build_qris_payload(STATIC_QRIS, 10000)

    def test_missing_country_code_raises(self):
        body = STATIC_QRIS_BODY.replace("5802ID", "5802SG")
        with pytest.raises(FormatError):
            build_qris_payload(body + crc16_ccitt(body), 10000)

    def test_empty_template_raises(self):
        with pytest.raises(FormatError):
            build_qris_payload("", 10000)

    def test_missing_crc_field_raises(self):
        with pytest.raises(FormatError):
            build_qris_payload(STATIC_QRIS_BODY[:-4], 10000)


# ---------------------------------------------------------------------------
# verify_checksum()
# ---------------------------------------------------------------------------
class TestVerifyChecksum:
    def test_valid_template(self):
        assert verify_checksum(STATIC_QRIS)

    def test_lowercase_checksum_accepted(self):
        assert verify_checksum(STATIC_QRIS[:-4] + STATIC_QRIS[-4:].lower())

    def test_tampered_payload_rejected(self):
        tampered = STATIC_QRIS.replace("DUKUNGAN TEST", "DUKUNGAN TESU")
        assert not verify_checksum(tampered)

    def test_too_short(self):
        assert not verify_checksum("ABC")


# ---------------------------------------------------------------------------
# render_qr_data_url()
# ---------------------------------------------------------------------------
class TestRenderQr:
    def test_returns_png_data_url(self):
        url = render_qr_data_url(build_qris_payload(STATIC_QRIS, 10000))
        assert url.startswith("data:image/png;base64,")
        png = base64.b64decode(url.split(",", 1)[1])
        assert png[:8] == b"\x89PNG\r\n\x1a\n"
