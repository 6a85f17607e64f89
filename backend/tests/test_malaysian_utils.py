# Overview: Pytest coverage for ringgit formatting and Malaysian field validators.

from decimal import Decimal

import pytest

from rentara.currency import (
    calculate_deposit,
    cents_to_ringgit,
    format_currency,
    format_ringgit,
    money,
    parse_currency,
    ringgit_to_cents,
)
from rentara.malaysian_validation import (
    format_malaysian_ic,
    format_malaysian_phone,
    validate_malaysian_ic,
    validate_malaysian_phone,
    validate_malaysian_postal_code,
    validate_ringgit_amount,
)
from rentara.validation import ValidationError, to_cents


class TestCurrency:

    def test_format_currency(self):
        assert format_currency(1500) == "RM1,500.00"
        assert format_currency("1234567.891") == "RM1,234,567.89"
        assert format_currency(1500, show_code=True) == "RM1,500.00 MYR"
        assert format_currency(1500, show_symbol=False) == "1,500.00"

    def test_format_currency_treats_missing_as_zero(self):
        assert format_currency(None) == "RM0.00"
        assert format_currency("abc") == "RM0.00"

    def test_format_ringgit(self):
        assert format_ringgit(1500) == "RM 1,500.00"
        assert format_ringgit(0) == "RM 0.00"
        assert format_ringgit(None) == ""

    def test_parse_currency(self):
        assert parse_currency("RM 1,234.50") == Decimal("1234.50")
        assert parse_currency("1,000 MYR") == Decimal("1000")
        assert parse_currency("") == Decimal(0)
        assert parse_currency("not money") == Decimal(0)

    def test_cents_conversions(self):
        assert cents_to_ringgit(150050) == Decimal("1500.50")
        assert ringgit_to_cents("1500.50") == 150050
        assert ringgit_to_cents(0.1) == 10
        assert money(None) == "0.00"

    def test_calculate_deposit(self):
        assert calculate_deposit(1000) == {
            "security_deposit": Decimal(2000),
            "advance_rental": Decimal(1000),
            "utility_deposit": Decimal(500),
            "total": Decimal(3500),
        }

    def test_calculate_deposit_fractional_rent(self):
        result = calculate_deposit("1250.50")
        assert result["utility_deposit"] == Decimal("625.25")
        assert result["total"] == Decimal("4376.75")


class TestToCents:

    @pytest.mark.parametrize("value,expected", [
        ("1500", 150000),
        ("1,500.50", 150050),
        ("RM 99.99", 9999),
        (1500, 150000),
        (12.3, 1230),
    ])
    def test_accepts(self, value, expected):
        assert to_cents(value) == expected

    @pytest.mark.parametrize("value", [None, True, "abc", "-1", "1.005", "NaN", "1e30"])
    def test_rejects(self, value):
        with pytest.raises(ValidationError):
            to_cents(value)

    def test_rejects_amount_above_limit(self):
        with pytest.raises(ValidationError, match="cannot exceed"):
            to_cents("10000000")
        with pytest.raises(ValidationError, match="cannot exceed"):
            to_cents("1e30")


class TestMalaysianIC:

    def test_valid_ic(self):
        assert validate_malaysian_ic("900101-14-5678").is_valid
        assert validate_malaysian_ic("900101145678")

    def test_length_error(self):
        check = validate_malaysian_ic("12345")
        assert not check.is_valid
        assert check.error == "IC number must be 12 digits"

    def test_required(self):
        assert validate_malaysian_ic("").error == "IC number is required"

    @pytest.mark.parametrize("ic,error", [
        ("901301145678", "Invalid month in IC number"),
        ("900132145678", "Invalid day in IC number"),
        ("900101995678", "Invalid state code in IC number"),
    ])
    def test_field_errors(self, ic, error):
        assert validate_malaysian_ic(ic).error == error

    def test_format_ic(self):
        assert format_malaysian_ic("123456789012") == "123456-78-9012"
        assert format_malaysian_ic("12345") == "12345"
        assert format_malaysian_ic(None) == ""


class TestMalaysianPhone:

    @pytest.mark.parametrize("phone", ["012-345 6789", "0123456789", "+60123456789", "03-2161 1234"])
    def test_valid(self, phone):
        assert validate_malaysian_phone(phone).is_valid

    @pytest.mark.parametrize("phone", ["12345", "+6512345678", "0123"])
    def test_invalid(self, phone):
        assert validate_malaysian_phone(phone).error == "Invalid Malaysian phone number format"

    def test_format(self):
        assert format_malaysian_phone("01123456789") == "011-234-56789"
        assert format_malaysian_phone("0321611234") == "03-216-11234"
        assert format_malaysian_phone("+60123456789") == "+60 1-234-56789"
        assert format_malaysian_phone("+601123456789") == "+60 11-234-56789"


class TestPostalAndAmount:

    def test_postal_code(self):
        assert validate_malaysian_postal_code("50450").is_valid
        assert validate_malaysian_postal_code("5045").error == "Malaysian postal code must be 5 digits"
        assert validate_malaysian_postal_code(None).error == "Postal code is required"

    def test_ringgit_amount(self):
        assert validate_ringgit_amount("1500.50").is_valid
        assert validate_ringgit_amount(0).is_valid
        assert validate_ringgit_amount("").error == "Amount is required"
        assert validate_ringgit_amount("abc").error == "Amount must be a valid number"
        assert validate_ringgit_amount(-5).error == "Amount cannot be negative"
        assert validate_ringgit_amount("1.234").error == "Amount cannot have more than 2 decimal places"
