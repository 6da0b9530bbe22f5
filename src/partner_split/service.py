"""Service layer that composes storage, validation and the calculators.

Records are loaded from the configured store, checked against the partner
pair and handed to the pure functions in `balance` and `analytics`.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from decimal import ROUND_HALF_DOWN, Decimal
from typing import Any, Literal

from .analytics import (
    balance_history,
    category_breakdown,
    category_trends,
    expense_summary,
    filter_expenses,
    monthly_trends,
    partner_comparison,
    recent,
    settlement_summary,
)
from .balance import calculate_balance, reconcile
from .clients.supabase import SupabaseClient
from .config import Settings
from .db import Database
from .exceptions import NothingToSettleError
from .models import (
    BalanceHistoryPoint,
    BalanceSummary,
    CategoryBreakdown,
    CategoryTrend,
    DashboardData,
    Expense,
    ExpenseFilters,
    ExpenseSummary,
    MonthlyTrend,
    PartnerBalance,
    PartnerComparison,
    Settlement,
    SettlementSummary,
)
from .money import CENT
from .validation import validate_expense, validate_records, validate_settlement

logger = logging.getLogger(__name__)

HALF_CENT = Decimal("0.005")


def _recorded_order(record: Expense | Settlement) -> tuple[date, int]:
    return (record.date, record.id or 0)


class LedgerService:
    """Service for recording shared expenses and reporting on balances."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the ledger service."""
        self.settings = settings
        self.db = database
        self.partners = settings.partners

    @contextmanager
    def _store(self) -> Iterator[Database | SupabaseClient]:
        """Yield the configured record store."""
        if self.settings.data_source == "supabase":
            url, key = self.settings.require_supabase()
            with SupabaseClient(url, key) as client:
                yield client
        else:
            yield self.db

    def load_records(self) -> tuple[list[Expense], list[Settlement]]:
        """
        Fetch and validate a snapshot of all expenses and settlements.

        Returns:
            Tuple of (expenses, settlements), newest first
        """
        with self._store() as store:
            expenses = store.get_expenses()
            settlements = store.get_settlements()

        logger.info(
            f"Loaded {len(expenses)} expenses and {len(settlements)} settlements "
            f"from {self.settings.data_source}"
        )
        return validate_records(expenses, settlements, self.partners)

    # ========================================================================
    # Balances
    # ========================================================================

    def get_balance(self, include_settlements: bool = True) -> BalanceSummary:
        """
        Compute the current balance between the partners.

        Args:
            include_settlements: Net settlements in (full reconciliation)

        Returns:
            Exact (unrounded) balance summary
        """
        expenses, settlements = self.load_records()
        if include_settlements:
            return reconcile(expenses, settlements, self.partners)
        return calculate_balance(expenses, self.partners)

    def get_dashboard(self) -> DashboardData:
        """Build the dashboard payload from one snapshot of the records."""
        expenses, settlements = self.load_records()

        expense_only = calculate_balance(expenses, self.partners)
        reconciled = reconcile(expenses, settlements, self.partners)

        partner_balances = [
            PartnerBalance(
                partner_id=partner.id,
                name=partner.name,
                total_paid=expense_only.paid_by[partner.id],
                expense_count=sum(1 for e in expenses if e.paid_by_id == partner.id),
                fair_share=expense_only.fair_share,
                balance=expense_only.balance[partner.id],
                settlements_out=reconciled.settlements_paid_out[partner.id],
                settlements_in=reconciled.settlements_received[partner.id],
                partnership_balance=reconciled.balance[partner.id],
            )
            for partner in (self.partners.first, self.partners.second)
        ]

        return DashboardData(
            total_expenses=reconciled.combined_total,
            expense_count=len(expenses),
            total_settlements=sum((s.amount for s in settlements), Decimal("0")),
            settlement_count=len(settlements),
            expenses_by_category={
                row.category: row.amount for row in category_breakdown(expenses)
            },
            monthly_expenses={
                row.month: row.total for row in monthly_trends(expenses, self.partners)
            },
            partner_balances=partner_balances,
            balance=reconciled,
            recent_expenses=recent(expenses, self.settings.recent_limit),
            recent_settlements=recent(settlements, self.settings.recent_limit),
        )

    # ========================================================================
    # Expenses
    # ========================================================================

    def list_expenses(self, filters: ExpenseFilters | None = None) -> list[Expense]:
        """List expenses matching the given filters."""
        expenses, _settlements = self.load_records()
        return filter_expenses(expenses, filters)

    def add_expense(
        self,
        amount: Decimal | str,
        description: str,
        paid_by_id: str,
        category: str = "Other",
        expense_date: date | None = None,
    ) -> Expense:
        """
        Record a new shared expense.

        Raises:
            pydantic.ValidationError: If the amount is negative or not a number
            UnknownPartnerError: If the payer is not one of the partners
        """
        expense = Expense(
            amount=amount,
            description=description,
            category=category,
            paid_by_id=paid_by_id,
            date=expense_date or date.today(),
        )
        validate_expense(expense, self.partners)

        with self._store() as store:
            saved = store.add_expense(expense)

        logger.info(
            f"Recorded expense {saved.id}: {saved.description} "
            f"({saved.amount}) paid by {saved.paid_by_id}"
        )
        return saved

    def update_expense(self, expense_id: int, **changes: Any) -> Expense:
        """Apply field changes to a stored expense and re-validate it."""
        with self._store() as store:
            current = store.get_expense(expense_id)
            updated = Expense.model_validate({**current.model_dump(), **changes})
            validate_expense(updated, self.partners)
            saved = store.update_expense(updated)

        logger.info(f"Updated expense {expense_id}: {sorted(changes)}")
        return saved

    def delete_expense(self, expense_id: int):
        """Delete a stored expense."""
        with self._store() as store:
            store.delete_expense(expense_id)
        logger.info(f"Deleted expense {expense_id}")

    # ========================================================================
    # Settlements
    # ========================================================================

    def list_settlements(
        self,
        paid_by: str | None = None,
        paid_to: str | None = None,
        limit: int | None = None,
    ) -> list[Settlement]:
        """List settlements, newest first."""
        with self._store() as store:
            settlements = store.get_settlements(paid_by=paid_by, paid_to=paid_to, limit=limit)
        return [validate_settlement(s, self.partners) for s in settlements]

    def add_settlement(
        self,
        amount: Decimal | str | None = None,
        paid_by: str | None = None,
        paid_to: str | None = None,
        description: str = "Settlement",
        settlement_date: date | None = None,
    ) -> Settlement:
        """
        Record a settlement between the partners.

        Without an amount, the outstanding net balance is settled to the cent
        and a balance of half a cent or less counts as even. Without a
        direction, the current debtor pays the creditor.

        Raises:
            NothingToSettleError: If no amount was given and nobody owes anything
            UnknownPartnerError: If either side is not one of the partners
        """
        if amount is None or paid_by is None:
            current = self.get_balance(include_settlements=True)
            if amount is None:
                if current.net_balance <= HALF_CENT:
                    raise NothingToSettleError("The partners are already even")
                # Half cents round down; at most half a cent stays outstanding
                amount = current.net_balance.quantize(CENT, rounding=ROUND_HALF_DOWN)
            if paid_by is None:
                if current.is_settled:
                    raise NothingToSettleError(
                        "Nobody owes anything; specify who is paying"
                    )
                paid_by = current.who_owes_whom
        if paid_to is None:
            paid_to = self.partners.other(paid_by)

        settlement = Settlement(
            amount=amount,
            paid_by=paid_by,
            paid_to=paid_to,
            description=description,
            date=settlement_date or date.today(),
        )
        validate_settlement(settlement, self.partners)

        with self._store() as store:
            saved = store.add_settlement(settlement)

        logger.info(
            f"Recorded settlement {saved.id}: {saved.paid_by} paid "
            f"{saved.paid_to} {saved.amount}"
        )
        return saved

    def get_settlement_summary(self) -> SettlementSummary:
        """Settlement totals with the balance still outstanding."""
        expenses, settlements = self.load_records()
        pending = reconcile(expenses, settlements, self.partners).net_balance
        return settlement_summary(settlements, pending)

    # ========================================================================
    # Analytics
    # ========================================================================

    def get_expense_summaries(self) -> list[ExpenseSummary]:
        """Per-partner expense totals."""
        expenses, _settlements = self.load_records()
        return [expense_summary(expenses, partner_id) for partner_id in self.partners.ids]

    def get_monthly_trends(
        self, filters: ExpenseFilters | None = None
    ) -> list[MonthlyTrend]:
        """Monthly spend, optionally restricted by expense filters."""
        expenses = self.list_expenses(filters)
        return monthly_trends(expenses, self.partners)

    def get_category_breakdown(
        self, filters: ExpenseFilters | None = None
    ) -> list[CategoryBreakdown]:
        """Spend per category, optionally restricted by expense filters."""
        expenses = self.list_expenses(filters)
        return category_breakdown(expenses)

    def get_partner_comparison(
        self, granularity: Literal["month", "week"] = "month"
    ) -> list[PartnerComparison]:
        """What each partner paid per month or week."""
        expenses, _settlements = self.load_records()
        return partner_comparison(expenses, self.partners, granularity)

    def get_balance_history(self) -> list[BalanceHistoryPoint]:
        """Running reconciled balance over time."""
        expenses, settlements = self.load_records()
        # Same-day records are replayed in the order they were recorded
        return balance_history(
            sorted(expenses, key=_recorded_order),
            sorted(settlements, key=_recorded_order),
            self.partners,
        )

    def get_category_trends(
        self, as_of: date | None = None, period_days: int = 30
    ) -> list[CategoryTrend]:
        """Category spend in the latest window against the one before it."""
        expenses, _settlements = self.load_records()
        return category_trends(expenses, as_of or date.today(), period_days)
