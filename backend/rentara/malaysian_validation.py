# Overview: Field validators and formatters for Malaysian identity, phone, postal and amount inputs.

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any


@dataclass(frozen=True)
class FieldCheck:
    """Result of a field validator; error is None when is_valid."""
    is_valid: bool
    error: str | None = None

    def __bool__(self) -> bool:
        return self.is_valid


VALID = FieldCheck(True)


# IC position 7-8: place-of-birth code (states plus FT/Labuan/Putrajaya)
VALID_STATE_CODES = frozenset({
    "01", "21", "22", "23", "24",  # Johor
    "02", "25", "26", "27",  # Kedah
    "03", "28", "29",  # Kelantan
    "04", "30",  # Malacca
    "05", "31", "59",  # Negeri Sembilan
    "06", "32", "33",  # Pahang
    "07", "34", "35",  # Pulau Pinang
    "08", "36", "37", "38", "39",  # Perak
    "09", "40",  # Perlis
    "10", "41", "42", "43", "44",  # Selangor
    "11", "45", "46",  # Terengganu
    "12", "47", "48", "49",  # Sabah
    "13", "50", "51", "52", "53",  # Sarawak
    "14", "54", "55", "56", "57",  # Federal Territory
    "15", "58", "82",  # Labuan
    "16",  # Putrajaya
})


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def validate_malaysian_ic(ic: str | None) -> FieldCheck:
    """
    MyKad number: 12 digits, YYMMDD-PB-####.

    Checks length, month 01-12, day 01-31 and the place-of-birth code.
    """
    if not ic:
        return FieldCheck(False, "IC number is required")

    clean = _digits(ic)
    if len(clean) != 12:
        return FieldCheck(False, "IC number must be 12 digits")

    month = int(clean[2:4])
    day = int(clean[4:6])
    state_code = clean[6:8]

    if month < 1 or month > 12:
        return FieldCheck(False, "Invalid month in IC number")
    if day < 1 or day > 31:
        return FieldCheck(False, "Invalid day in IC number")
    if state_code not in VALID_STATE_CODES:
        return FieldCheck(False, "Invalid state code in IC number")

    return VALID


def format_malaysian_ic(ic: str | None) -> str:
    """Dash a 12-digit IC as YYMMDD-PB-####; anything else is returned unchanged."""
    if not ic:
        return ""
    clean = _digits(ic)
    if len(clean) == 12:
        return f"{clean[:6]}-{clean[6:8]}-{clean[8:]}"
    return ic


def _clean_phone(phone: str) -> str:
    return re.sub(r"[^\d+]", "", phone)


def validate_malaysian_phone(phone: str | None) -> FieldCheck:
    """Accepts +60 followed by 9-10 digits, or a local 0-prefixed 10-11 digit number."""
    if not phone:
        return FieldCheck(False, "Phone number is required")

    clean = _clean_phone(phone)

    if clean.startswith("+60"):
        if 9 <= len(clean[3:]) <= 10:
            return VALID

    if clean.startswith("0"):
        if 10 <= len(clean) <= 11:
            return VALID

    return FieldCheck(False, "Invalid Malaysian phone number format")


def format_malaysian_phone(phone: str | None) -> str:
    if not phone:
        return ""

    clean = _clean_phone(phone)

    # Mobile: 01X-XXX-XXXX
    if clean.startswith("01") and len(clean) == 11:
        return f"{clean[:3]}-{clean[3:6]}-{clean[6:]}"

    # Landline: 0X-XXX-XXXX
    if clean.startswith("0") and len(clean) == 10:
        return f"{clean[:2]}-{clean[2:5]}-{clean[5:]}"

    if clean.startswith("+60") and len(clean) >= 12:
        number = clean[3:]
        if len(number) == 10:
            return f"+60 {number[:2]}-{number[2:5]}-{number[5:]}"
        if len(number) == 9:
            return f"+60 {number[:1]}-{number[1:4]}-{number[4:]}"

    return phone


def validate_malaysian_postal_code(postal_code: str | None) -> FieldCheck:
    if not postal_code:
        return FieldCheck(False, "Postal code is required")
    if len(_digits(postal_code)) != 5:
        return FieldCheck(False, "Malaysian postal code must be 5 digits")
    return VALID


def validate_ringgit_amount(amount: Any) -> FieldCheck:
    if amount is None or amount == "":
        return FieldCheck(False, "Amount is required")

    text = str(amount).strip()
    try:
        value = Decimal(text)
    except InvalidOperation:
        return FieldCheck(False, "Amount must be a valid number")
    if not value.is_finite():
        return FieldCheck(False, "Amount must be a valid number")

    if value < 0:
        return FieldCheck(False, "Amount cannot be negative")

    if "." in text and len(text.split(".", 1)[1]) > 2:
        return FieldCheck(False, "Amount cannot have more than 2 decimal places")

    return VALID
