"""Tests for money rounding, formatting and JSON conversion."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import TAHA, make_expense
from partner_split.money import format_money, round_money, to_jsonable


@pytest.mark.parametrize(
    "amount,expected",
    [
        ("50.005", "50.01"),
        ("-50.005", "-50.01"),
        ("1.664", "1.66"),
        ("0.125", "0.13"),
        ("10", "10.00"),
    ],
)
def test_round_money_half_up(amount, expected):
    assert round_money(Decimal(amount)) == Decimal(expected)
    assert str(round_money(Decimal(amount))) == expected


def test_format_positive():
    assert format_money(Decimal("1234.5")) == "$1,234.50"


def test_format_negative_uses_parentheses():
    assert format_money(Decimal("-85.015")) == "($85.02)"


def test_format_other_currency():
    assert format_money(Decimal("3"), currency="EUR") == "EUR 3.00"


def test_to_jsonable_rounds_and_serializes():
    expense = make_expense("100.005", TAHA, id=3, on=date(2024, 5, 1))

    data = to_jsonable({"items": [expense], "total": Decimal("1.005")})

    assert data["total"] == 1.01
    assert data["items"][0]["amount"] == 100.01
    assert data["items"][0]["date"] == "2024-05-01"
    assert data["items"][0]["created_at"] is None
