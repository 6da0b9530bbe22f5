"""Shared fixtures for partner-split tests."""

from datetime import date
from decimal import Decimal

import pytest

from partner_split.config import Settings
from partner_split.db import Database
from partner_split.models import Expense, Partner, PartnerPair, Settlement
from partner_split.service import LedgerService

TAHA = "taha"
BURAK = "burak"


def make_expense(
    amount: str,
    paid_by: str,
    id: int | None = None,
    on: date = date(2024, 1, 15),
    category: str = "Food",
    description: str | None = None,
) -> Expense:
    """Create an Expense for testing."""
    return Expense(
        id=id,
        amount=Decimal(amount),
        description=description or f"Test expense {id}",
        category=category,
        paid_by_id=paid_by,
        date=on,
    )


def make_settlement(
    amount: str,
    paid_by: str,
    paid_to: str,
    id: int | None = None,
    on: date = date(2024, 1, 20),
) -> Settlement:
    """Create a Settlement for testing."""
    return Settlement(
        id=id,
        amount=Decimal(amount),
        paid_by=paid_by,
        paid_to=paid_to,
        date=on,
    )


@pytest.fixture
def partners():
    """The default partner pair."""
    return PartnerPair(
        first=Partner(id=TAHA, name="Taha"),
        second=Partner(id=BURAK, name="Burak"),
    )


@pytest.fixture
def sample_expenses():
    """A small ledger spanning two months."""
    return [
        make_expense("25.50", TAHA, id=1, on=date(2024, 1, 15), description="Lunch"),
        make_expense(
            "60.99",
            BURAK,
            id=2,
            on=date(2024, 1, 16),
            category="Groceries",
            description="Groceries",
        ),
        make_expense("15.75", TAHA, id=3, on=date(2024, 1, 17), description="Coffee"),
        make_expense(
            "120.00",
            BURAK,
            id=4,
            on=date(2024, 2, 18),
            category="Utilities",
            description="Electricity",
        ),
        make_expense(
            "45.30",
            TAHA,
            id=5,
            on=date(2024, 2, 19),
            category="Transportation",
            description="Gas",
        ),
    ]


@pytest.fixture
def sample_settlements():
    """Settlements in both directions."""
    return [
        make_settlement("30.00", TAHA, BURAK, id=1, on=date(2024, 1, 17)),
        make_settlement("15.00", BURAK, TAHA, id=2, on=date(2024, 1, 18)),
    ]


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a temporary SQLite database."""
    return Settings(
        partner_a_id=TAHA,
        partner_a_name="Taha",
        partner_b_id=BURAK,
        partner_b_name="Burak",
        data_source="sqlite",
        database_path=tmp_path / "test.db",
    )


@pytest.fixture
def db(settings):
    """Create a temporary database."""
    database = Database(settings.database_path)
    yield database
    database.close()


@pytest.fixture
def service(settings, db):
    """Create a LedgerService instance."""
    return LedgerService(settings, db)
