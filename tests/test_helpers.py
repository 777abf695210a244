from __future__ import annotations

from datetime import date

import pytest
from werkzeug.datastructures import MultiDict

from helpers import (
    ValidationError,
    format_ddmmyyyy,
    format_inr,
    is_valid_email,
    parse_amount,
    parse_date,
    parse_optional_amount,
    parse_optional_date,
    parse_window,
    safe_next,
)


@pytest.mark.parametrize("value, expected", [
    (0, "0"),
    (999, "999"),
    (45750, "45,750"),
    (1234567, "12,34,567"),
    (1234567.5, "12,34,567.5"),
    (None, "0"),
    (-150000, "-1,50,000"),
])
def test_format_inr(value, expected) -> None:
    assert format_inr(value) == expected


def test_parse_amount_rejects_blank_negative_and_text() -> None:
    assert parse_amount("12.5") == 12.5
    assert parse_amount(" 0 ") == 0
    for bad in ("", "-1", "abc", "nan"):
        with pytest.raises(ValidationError):
            parse_amount(bad)


def test_parse_optional_amount_blank_is_none() -> None:
    assert parse_optional_amount("") is None
    assert parse_optional_amount(None) is None
    assert parse_optional_amount("45000") == 45000
    with pytest.raises(ValidationError, match="non-negative"):
        parse_optional_amount("-5")


def test_parse_date_requires_iso_format() -> None:
    assert parse_date("2025-12-04") == date(2025, 12, 4)
    assert parse_optional_date("") is None
    for bad in ("04/12/2025", "2025-13-01", "2025-1-5"):
        with pytest.raises(ValidationError, match="Invalid date"):
            parse_date(bad)
    with pytest.raises(ValidationError, match="required"):
        parse_date("")


def test_parse_window_clamps_bounds() -> None:
    assert parse_window(MultiDict(), 20) == (0, 20)
    assert parse_window(MultiDict({"offset": "-4", "limit": "0"}), 20) == (0, 1)
    assert parse_window(MultiDict({"offset": "40", "limit": "5000"}), 20) == (40, 100)
    assert parse_window(MultiDict({"offset": "x"}), 20) == (0, 20)


def test_email_and_redirect_checks() -> None:
    assert is_valid_email("you@example.com")
    assert not is_valid_email("you@example")
    assert safe_next("/employees/1", "/") == "/employees/1"
    assert safe_next("//evil.example", "/") == "/"
    assert safe_next("https://evil.example", "/") == "/"


def test_format_ddmmyyyy() -> None:
    assert format_ddmmyyyy(date(2025, 3, 9)) == "09/03/2025"
    assert format_ddmmyyyy(None) == ""
