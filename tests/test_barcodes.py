"""Tests for barcode normalization."""

import pytest

from food_lookup.domain.barcodes import (
    BarcodeFormat,
    InvalidBarcodeError,
    detect_barcode_format,
    format_barcode_for_display,
    normalize_barcode,
    pad_barcode_to_ean13,
    validate_and_normalize_barcode,
)


def test_upc_a_and_ean13_forms_converge() -> None:
    assert normalize_barcode("036000291452") == "0036000291452"
    assert normalize_barcode("0036000291452") == "0036000291452"


def test_normalize_strips_separators() -> None:
    assert normalize_barcode(" 0 036000 291452\n") == "0036000291452"
    assert normalize_barcode("036000-291452") == "0036000291452"


def test_normalize_is_idempotent() -> None:
    once = normalize_barcode("036000291452")

    assert normalize_barcode(once) == once


@pytest.mark.parametrize("raw", ["", "abc", "123"])
def test_normalize_rejects_garbage(raw: str) -> None:
    with pytest.raises(InvalidBarcodeError):
        normalize_barcode(raw)


def test_normalize_reports_length_and_reason() -> None:
    with pytest.raises(InvalidBarcodeError) as exc_info:
        normalize_barcode("abc")
    assert exc_info.value.reason == "empty"
    assert exc_info.value.detected_length == 0
    assert exc_info.value.raw_code == "abc"

    with pytest.raises(InvalidBarcodeError) as exc_info:
        normalize_barcode("12345678")
    assert exc_info.value.reason == "unsupported_format"
    assert "EAN-8" in str(exc_info.value)

    with pytest.raises(InvalidBarcodeError) as exc_info:
        normalize_barcode("12345678901234")
    assert "GTIN-14" in str(exc_info.value)


def test_invalid_barcode_is_a_value_error() -> None:
    with pytest.raises(ValueError, match="Invalid barcode length: 3 digits"):
        normalize_barcode("123")


def test_validate_and_normalize_returns_details() -> None:
    valid = validate_and_normalize_barcode("036000291452")
    invalid = validate_and_normalize_barcode("12345678")

    assert valid.is_valid
    assert valid.normalized_code == "0036000291452"
    assert valid.format is BarcodeFormat.UPC_A
    assert not invalid.is_valid
    assert invalid.normalized_code is None
    assert invalid.format is BarcodeFormat.EAN_8
    assert invalid.error


def test_detect_format() -> None:
    assert detect_barcode_format("0036000291452") is BarcodeFormat.EAN_13
    assert detect_barcode_format("12345678901234") is BarcodeFormat.GTIN_14
    assert detect_barcode_format("1") is BarcodeFormat.UNKNOWN


def test_format_for_display() -> None:
    assert format_barcode_for_display("0036000291452") == "0 036000 291452"
    assert format_barcode_for_display("036000291452") == "036000 291452"
    assert format_barcode_for_display("12-34") == "1234"


def test_pad_barcode_to_ean13() -> None:
    assert pad_barcode_to_ean13(" 12345 ") == "0000000012345"
    assert pad_barcode_to_ean13("0036000291452") == "0036000291452"


@pytest.mark.parametrize(
    ("value", "reason"),
    [
        (None, "empty"),
        ("   ", "empty"),
        ("abc123", "non_numeric"),
        ("12 34", "non_numeric"),
        ("12345678901234", "too_long"),
    ],
)
def test_pad_barcode_rejects(value: str | None, reason: str) -> None:
    with pytest.raises(InvalidBarcodeError) as exc_info:
        pad_barcode_to_ean13(value)
    assert exc_info.value.reason == reason
