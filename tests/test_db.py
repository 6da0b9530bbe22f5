"""Tests for the SQLite record store."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import BURAK, TAHA, make_expense, make_settlement
from partner_split.db import Database
from partner_split.exceptions import RecordNotFoundError


class TestExpenses:
    """Expense CRUD."""

    def test_add_assigns_id_and_timestamp(self, db):
        saved = db.add_expense(make_expense("12.34", TAHA))

        assert saved.id == 1
        assert saved.created_at is not None

    def test_amount_round_trips_exactly(self, db):
        saved = db.add_expense(make_expense("100.005", TAHA))

        assert db.get_expense(saved.id).amount == Decimal("100.005")

    def test_get_expenses_newest_first(self, db, sample_expenses):
        for expense in sample_expenses:
            db.add_expense(expense.model_copy(update={"id": None}))

        dates = [e.date for e in db.get_expenses()]

        assert dates == sorted(dates, reverse=True)
        assert len(dates) == 5

    def test_same_day_orders_by_id(self, db):
        first = db.add_expense(make_expense("1", TAHA))
        second = db.add_expense(make_expense("2", BURAK))

        assert [e.id for e in db.get_expenses()] == [second.id, first.id]

    def test_get_missing_expense(self, db):
        with pytest.raises(RecordNotFoundError, match="Expense 42 not found"):
            db.get_expense(42)

    def test_update_expense(self, db):
        saved = db.add_expense(make_expense("10", TAHA))

        updated = db.update_expense(
            saved.model_copy(update={"amount": Decimal("15"), "category": "Travel"})
        )

        assert updated.amount == Decimal("15")
        assert updated.category == "Travel"
        assert db.get_expense(saved.id).amount == Decimal("15")

    def test_update_missing_expense(self, db):
        with pytest.raises(RecordNotFoundError):
            db.update_expense(make_expense("10", TAHA, id=42))

    def test_update_without_id(self, db):
        with pytest.raises(ValueError):
            db.update_expense(make_expense("10", TAHA))

    def test_delete_expense(self, db):
        saved = db.add_expense(make_expense("10", TAHA))

        db.delete_expense(saved.id)

        assert db.get_expenses() == []
        with pytest.raises(RecordNotFoundError):
            db.delete_expense(saved.id)


class TestSettlements:
    """Settlement storage and filtering."""

    @pytest.fixture
    def stored(self, db):
        db.add_settlement(make_settlement("30", TAHA, BURAK, on=date(2024, 1, 17)))
        db.add_settlement(make_settlement("15", BURAK, TAHA, on=date(2024, 1, 18)))
        db.add_settlement(make_settlement("5", BURAK, TAHA, on=date(2024, 1, 19)))
        return db

    def test_add_and_get(self, db):
        saved = db.add_settlement(make_settlement("20.50", BURAK, TAHA))

        fetched = db.get_settlement(saved.id)

        assert fetched.amount == Decimal("20.50")
        assert fetched.paid_by == BURAK
        assert fetched.paid_to == TAHA
        assert fetched.description == "Settlement"

    def test_get_missing_settlement(self, db):
        with pytest.raises(RecordNotFoundError, match="Settlement 3 not found"):
            db.get_settlement(3)

    def test_newest_first(self, stored):
        assert [s.amount for s in stored.get_settlements()] == [
            Decimal("5"),
            Decimal("15"),
            Decimal("30"),
        ]

    def test_filter_by_payer(self, stored):
        settlements = stored.get_settlements(paid_by=BURAK)

        assert {s.paid_by for s in settlements} == {BURAK}
        assert len(settlements) == 2

    def test_filter_by_recipient_with_limit(self, stored):
        settlements = stored.get_settlements(paid_to=TAHA, limit=1)

        assert len(settlements) == 1
        assert settlements[0].date == date(2024, 1, 19)


def test_data_persists_across_connections(tmp_path):
    path = tmp_path / "ledger.db"
    with Database(path) as first:
        first.add_expense(make_expense("9.99", TAHA))

    with Database(path) as second:
        assert [e.amount for e in second.get_expenses()] == [Decimal("9.99")]
