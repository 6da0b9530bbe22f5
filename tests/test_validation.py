"""Tests for record validation."""

import pytest

from conftest import BURAK, TAHA, make_expense, make_settlement
from partner_split.exceptions import InvalidRecordError, UnknownPartnerError
from partner_split.validation import (
    validate_expense,
    validate_records,
    validate_settlement,
)


def test_valid_expense_passes(partners):
    expense = make_expense("10", TAHA, id=1)

    assert validate_expense(expense, partners) is expense


def test_expense_from_unknown_partner(partners):
    with pytest.raises(UnknownPartnerError) as exc_info:
        validate_expense(make_expense("10", "carol", id=7), partners)

    assert exc_info.value.partner_id == "carol"
    assert "Expense 7" in str(exc_info.value)


def test_settlement_to_self_rejected(partners):
    with pytest.raises(InvalidRecordError, match="themselves"):
        validate_settlement(make_settlement("10", TAHA, TAHA), partners)


def test_settlement_with_unknown_recipient(partners):
    with pytest.raises(UnknownPartnerError, match="carol"):
        validate_settlement(make_settlement("10", BURAK, "carol"), partners)


def test_validate_records_returns_lists(partners, sample_expenses, sample_settlements):
    expenses, settlements = validate_records(
        iter(sample_expenses), iter(sample_settlements), partners
    )

    assert expenses == sample_expenses
    assert settlements == sample_settlements


def test_validate_records_fails_on_first_bad_record(partners, sample_expenses):
    bad = sample_expenses + [make_expense("5", "carol", id=99)]

    with pytest.raises(UnknownPartnerError):
        validate_records(bad, [], partners)
