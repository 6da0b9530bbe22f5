"""Tests for LedgerService layer."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from conftest import BURAK, TAHA, make_expense, make_settlement
from partner_split.config import Settings
from partner_split.exceptions import (
    ConfigurationError,
    InvalidRecordError,
    NothingToSettleError,
    RecordNotFoundError,
    UnknownPartnerError,
)
from partner_split.models import ExpenseFilters
from partner_split.service import LedgerService


@pytest.fixture
def seeded(service, db, sample_expenses, sample_settlements):
    """Service backed by a database holding the sample ledger."""
    for expense in sample_expenses:
        db.add_expense(expense.model_copy(update={"id": None}))
    for settlement in sample_settlements:
        db.add_settlement(settlement.model_copy(update={"id": None}))
    return service


class TestBalance:
    """Balance queries through the service."""

    def test_empty_ledger(self, service):
        result = service.get_balance()

        assert result.combined_total == 0
        assert result.is_settled

    def test_reconciled_balance(self, seeded):
        result = seeded.get_balance()

        assert result.balance[TAHA] == Decimal("-32.22")
        assert result.who_owes_whom == TAHA
        assert result.includes_settlements

    def test_expense_only_balance(self, seeded):
        result = seeded.get_balance(include_settlements=False)

        assert result.balance[TAHA] == Decimal("-47.22")
        assert result.includes_settlements is False

    def test_foreign_record_in_store_fails_loudly(self, service, db):
        db.add_expense(make_expense("10", "carol"))

        with pytest.raises(UnknownPartnerError):
            service.get_balance()


class TestExpenses:
    """Recording and editing expenses."""

    def test_add_expense(self, service):
        saved = service.add_expense(
            amount="42.50",
            description="Dinner",
            paid_by_id=TAHA,
            category="Food",
            expense_date=date(2024, 3, 1),
        )

        assert saved.id is not None
        assert saved.amount == Decimal("42.50")
        assert service.get_balance().balance[TAHA] == Decimal("21.25")

    def test_add_expense_defaults_to_today(self, service):
        saved = service.add_expense(amount="5", description="Snack", paid_by_id=BURAK)

        assert saved.date == date.today()
        assert saved.category == "Other"

    def test_add_expense_unknown_partner_is_not_stored(self, service, db):
        with pytest.raises(UnknownPartnerError):
            service.add_expense(amount="5", description="x", paid_by_id="carol")

        assert db.get_expenses() == []

    def test_add_expense_negative_amount(self, service):
        with pytest.raises(ValidationError):
            service.add_expense(amount="-5", description="x", paid_by_id=TAHA)

    def test_update_expense(self, seeded):
        updated = seeded.update_expense(1, amount=Decimal("30.00"), category="Travel")

        assert updated.amount == Decimal("30.00")
        assert updated.category == "Travel"
        assert updated.description == "Lunch"

    def test_update_rejects_unknown_payer(self, seeded):
        with pytest.raises(UnknownPartnerError):
            seeded.update_expense(1, paid_by_id="carol")

    def test_update_missing_expense(self, service):
        with pytest.raises(RecordNotFoundError):
            service.update_expense(99, amount=Decimal("1"))

    def test_delete_expense(self, seeded):
        seeded.delete_expense(4)

        assert 4 not in [e.id for e in seeded.list_expenses()]

    def test_list_expenses_with_filters(self, seeded):
        result = seeded.list_expenses(ExpenseFilters(paid_by=BURAK))

        assert [e.description for e in result] == ["Electricity", "Groceries"]


class TestSettlements:
    """Recording settlements."""

    def test_settle_full_balance_by_default(self, service):
        service.add_expense(amount="100", description="Rent", paid_by_id=TAHA)

        settlement = service.add_settlement()

        assert settlement.paid_by == BURAK
        assert settlement.paid_to == TAHA
        assert settlement.amount == Decimal("50.00")
        assert service.get_balance().is_settled

    def test_settle_half_cent_does_not_overpay(self, service):
        service.add_expense(amount="100.01", description="Rent", paid_by_id=TAHA)

        settlement = service.add_settlement()
        after = service.get_balance()

        assert settlement.paid_by == BURAK
        assert settlement.amount == Decimal("50.00")
        assert after.who_owes_whom == BURAK
        assert after.net_balance == Decimal("0.005")
        with pytest.raises(NothingToSettleError):
            service.add_settlement()
        assert len(service.list_settlements()) == 1

    def test_settle_rounds_up_below_half_cent(self, service):
        service.add_expense(amount="100.013", description="Rent", paid_by_id=TAHA)

        settlement = service.add_settlement()

        assert settlement.amount == Decimal("50.01")
        assert service.get_balance().net_balance <= Decimal("0.005")
        with pytest.raises(NothingToSettleError):
            service.add_settlement()

    def test_nothing_to_settle(self, service):
        with pytest.raises(NothingToSettleError):
            service.add_settlement()

    def test_explicit_partial_settlement(self, seeded):
        settlement = seeded.add_settlement(amount="10", paid_by=TAHA)

        assert settlement.paid_to == BURAK
        assert seeded.get_balance().balance[TAHA] == Decimal("-22.22")

    def test_settlement_to_self_rejected(self, service):
        with pytest.raises(InvalidRecordError):
            service.add_settlement(amount="10", paid_by=TAHA, paid_to=TAHA)

    def test_settlement_with_unknown_payer(self, service):
        with pytest.raises(UnknownPartnerError):
            service.add_settlement(amount="10", paid_by="carol")

    def test_list_settlements(self, seeded):
        settlements = seeded.list_settlements(paid_by=BURAK)

        assert [s.amount for s in settlements] == [Decimal("15.00")]

    def test_settlement_summary(self, seeded):
        summary = seeded.get_settlement_summary()

        assert summary.total_settlements == 2
        assert summary.total_amount == Decimal("45.00")
        assert summary.pending_balance == Decimal("32.22")


class TestAnalytics:
    """Dashboard and reports through the service."""

    def test_dashboard(self, seeded):
        dashboard = seeded.get_dashboard()

        assert dashboard.total_expenses == Decimal("267.54")
        assert dashboard.expense_count == 5
        assert dashboard.total_settlements == Decimal("45.00")
        assert dashboard.settlement_count == 2
        assert dashboard.expenses_by_category["Food"] == Decimal("41.25")
        assert dashboard.monthly_expenses == {
            "2024-01": Decimal("102.24"),
            "2024-02": Decimal("165.30"),
        }
        assert dashboard.balance.balance[TAHA] == Decimal("-32.22")
        assert [e.description for e in dashboard.recent_expenses][:2] == [
            "Gas",
            "Electricity",
        ]

    def test_dashboard_partner_balances(self, seeded):
        taha, burak = seeded.get_dashboard().partner_balances

        assert taha.partner_id == TAHA
        assert taha.total_paid == Decimal("86.55")
        assert taha.expense_count == 3
        assert taha.balance == Decimal("-47.22")
        assert taha.settlements_out == Decimal("30.00")
        assert taha.settlements_in == Decimal("15.00")
        assert taha.partnership_balance == Decimal("-32.22")
        assert burak.partnership_balance == Decimal("32.22")

    def test_recent_limit_from_settings(self, settings, db, sample_expenses):
        for expense in sample_expenses:
            db.add_expense(expense.model_copy(update={"id": None}))
        service = LedgerService(settings.model_copy(update={"recent_limit": 2}), db)

        assert len(service.get_dashboard().recent_expenses) == 2

    def test_expense_summaries(self, seeded):
        taha, burak = seeded.get_expense_summaries()

        assert taha.total_amount == Decimal("86.55")
        assert burak.total_amount == Decimal("180.99")

    def test_monthly_trends_with_filters(self, seeded):
        rows = seeded.get_monthly_trends(ExpenseFilters(category="Food"))

        assert [(r.month, r.total) for r in rows] == [("2024-01", Decimal("41.25"))]

    def test_category_breakdown(self, seeded):
        rows = seeded.get_category_breakdown()

        assert rows[0].category == "Utilities"

    def test_partner_comparison_by_week(self, seeded):
        rows = seeded.get_partner_comparison("week")

        assert [r.period for r in rows] == ["2024-W03", "2024-W07", "2024-W08"]

    def test_balance_history_ends_at_current_balance(self, seeded):
        points = seeded.get_balance_history()

        assert len(points) == 7
        assert points[-1].balance == Decimal("-32.22")

    def test_balance_history_same_day_in_recorded_order(self, service):
        for amount in ("10", "30", "50"):
            service.add_expense(
                amount=amount,
                description="Snacks",
                paid_by_id=TAHA,
                expense_date=date(2024, 4, 1),
            )

        points = service.get_balance_history()

        assert [p.record_id for p in points] == [1, 2, 3]
        assert [p.balance for p in points] == [
            Decimal("5"),
            Decimal("20"),
            Decimal("45"),
        ]

    def test_category_trends(self, seeded):
        rows = seeded.get_category_trends(as_of=date(2024, 2, 19))

        assert {r.category: r.trend for r in rows}["Utilities"] == "up"


class TestSupabaseSource:
    """Routing to the hosted backend."""

    def test_missing_credentials(self, settings, db):
        service = LedgerService(settings.model_copy(update={"data_source": "supabase"}), db)

        with pytest.raises(ConfigurationError, match="SUPABASE_URL"):
            service.get_balance()

    def test_records_come_from_supabase(self, tmp_path, db):
        settings = Settings(
            partner_a_id=TAHA,
            partner_b_id=BURAK,
            data_source="supabase",
            supabase_url="https://example.supabase.co",
            supabase_key="anon-key",
            database_path=tmp_path / "unused.db",
        )
        client = MagicMock()
        client.get_expenses.return_value = [make_expense("80", TAHA, id=1)]
        client.get_settlements.return_value = [make_settlement("10", BURAK, TAHA, id=1)]

        with patch("partner_split.service.SupabaseClient") as client_cls:
            client_cls.return_value.__enter__.return_value = client
            result = LedgerService(settings, db).get_balance()

        client_cls.assert_called_once_with("https://example.supabase.co", "anon-key")
        assert result.balance[TAHA] == Decimal("30")
        assert db.get_expenses() == []
