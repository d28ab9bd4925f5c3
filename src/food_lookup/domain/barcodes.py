"""Barcode validation and normalization.

Barcodes are always handled as strings so leading zeros survive. The canonical
form used for storage and lookups is the 13-digit EAN-13 string: UPC-A codes
(12 digits) gain a leading zero, EAN-13 codes pass through unchanged.
"""

import re
from dataclasses import dataclass
from enum import StrEnum

EAN13_LENGTH = 13
UPCA_LENGTH = 12
EAN8_LENGTH = 8
GTIN14_LENGTH = 14

_NON_DIGITS = re.compile(r"[^0-9]")


class BarcodeFormat(StrEnum):
    """Barcode symbology inferred from digit count."""

    UPC_A = "UPC-A"
    EAN_13 = "EAN-13"
    EAN_8 = "EAN-8"
    GTIN_14 = "GTIN-14"
    UNKNOWN = "unknown"


class InvalidBarcodeError(ValueError):
    """Raised when a raw code cannot be normalized to EAN-13."""

    def __init__(
        self,
        message: str,
        raw_code: str,
        detected_length: int,
        reason: str = "invalid_length",
    ) -> None:
        super().__init__(message)
        self.raw_code = raw_code
        self.detected_length = detected_length
        self.reason = reason


@dataclass(frozen=True)
class BarcodeValidation:
    """Detailed, non-raising validation result."""

    is_valid: bool
    raw_code: str
    normalized_code: str | None
    error: str | None
    format: BarcodeFormat


def _digits(code: str) -> str:
    return _NON_DIGITS.sub("", code)


def normalize_barcode(raw_code: str) -> str:
    """Normalize a scanned code to a 13-digit EAN-13 string.

    Non-digit characters are stripped first. Raises ``InvalidBarcodeError``
    for empty input and for lengths other than 12 or 13.
    """
    clean = _digits(raw_code)
    length = len(clean)
    if length == 0:
        raise InvalidBarcodeError(
            "Barcode is empty after removing non-digit characters",
            raw_code,
            0,
            reason="empty",
        )
    if length == EAN13_LENGTH:
        return clean
    if length == UPCA_LENGTH:
        return "0" + clean
    if length == EAN8_LENGTH:
        raise InvalidBarcodeError(
            "EAN-8 barcodes are not yet supported. "
            "Please use a product with a standard 12 or 13 digit barcode.",
            raw_code,
            length,
            reason="unsupported_format",
        )
    if length == GTIN14_LENGTH:
        raise InvalidBarcodeError(
            "GTIN-14 barcodes are not yet supported. "
            "Please use a product with a standard 12 or 13 digit barcode.",
            raw_code,
            length,
            reason="unsupported_format",
        )
    raise InvalidBarcodeError(
        f"Invalid barcode length: {length} digits. "
        "Expected 12 (UPC-A) or 13 (EAN-13) digits.",
        raw_code,
        length,
    )


def validate_and_normalize_barcode(raw_code: str) -> BarcodeValidation:
    """Validate a code and return the outcome instead of raising."""
    barcode_format = detect_barcode_format(raw_code)
    try:
        normalized = normalize_barcode(raw_code)
    except InvalidBarcodeError as exc:
        return BarcodeValidation(
            is_valid=False,
            raw_code=raw_code,
            normalized_code=None,
            error=str(exc),
            format=barcode_format,
        )
    return BarcodeValidation(
        is_valid=True,
        raw_code=raw_code,
        normalized_code=normalized,
        error=None,
        format=barcode_format,
    )


def detect_barcode_format(code: str) -> BarcodeFormat:
    """Detect the barcode format from its digit count."""
    return {
        EAN8_LENGTH: BarcodeFormat.EAN_8,
        UPCA_LENGTH: BarcodeFormat.UPC_A,
        EAN13_LENGTH: BarcodeFormat.EAN_13,
        GTIN14_LENGTH: BarcodeFormat.GTIN_14,
    }.get(len(_digits(code)), BarcodeFormat.UNKNOWN)


def format_barcode_for_display(code: str) -> str:
    """Group digits for display: EAN-13 as 1-6-6, UPC-A as 6-6."""
    clean = _digits(code)
    if len(clean) == EAN13_LENGTH:
        return f"{clean[0]} {clean[1:7]} {clean[7:]}"
    if len(clean) == UPCA_LENGTH:
        return f"{clean[:6]} {clean[6:]}"
    return clean


def pad_barcode_to_ean13(value: str | None) -> str:
    """Strictly validate a manually entered code and left-pad it to 13 digits."""
    raw = (value or "").strip()
    if not raw:
        raise InvalidBarcodeError("Barcode is empty", raw, 0, reason="empty")
    if not raw.isascii() or not raw.isdigit():
        raise InvalidBarcodeError(
            "Barcode must contain digits only",
            raw,
            len(_digits(raw)),
            reason="non_numeric",
        )
    if len(raw) > EAN13_LENGTH:
        raise InvalidBarcodeError(
            f"Barcode is longer than {EAN13_LENGTH} digits",
            raw,
            len(raw),
            reason="too_long",
        )
    return raw.zfill(EAN13_LENGTH)
