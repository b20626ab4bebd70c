from datetime import date

import pytest

from visionfetch.errors import ValidationError
from visionfetch.validation import validate_date, validate_symbol


@pytest.mark.parametrize(
    "symbol,valid",
    [
        ("AIUSDT", True),
        ("BTC123", True),
        ("", False),
        ("aiusdt", False),
        ("AI-USDT", False),
        ("AI USDT", False),
    ],
)
def test_validate_symbol(symbol, valid):
    if valid:
        assert validate_symbol(symbol) == symbol
    else:
        with pytest.raises(ValidationError):
            validate_symbol(symbol)


@pytest.mark.parametrize(
    "year,month,day,valid",
    [
        ("2025", "12", "28", True),
        ("2025", "1", "5", True),
        ("2024", "02", "29", True),
        ("1999", "12", "28", False),
        ("2101", "12", "28", False),
        ("2025", "13", "28", False),
        ("2025", "0", "28", False),
        ("2025", "12", "32", False),
        ("2025", "12", "0", False),
        ("2025", "02", "30", False),
        ("2025", "02", "29", False),
        ("abcd", "01", "01", False),
    ],
)
def test_validate_date(year, month, day, valid):
    if valid:
        assert isinstance(validate_date(year, month, day), date)
    else:
        with pytest.raises(ValidationError):
            validate_date(year, month, day)


def test_validate_date_returns_calendar_date():
    assert validate_date("2025", "1", "5") == date(2025, 1, 5)


def test_validation_error_is_value_error():
    with pytest.raises(ValueError, match="invalid date: 2025-02-30"):
        validate_date(2025, 2, 30)
