"""Pydantic domain models for partner-split."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .exceptions import UnknownPartnerError
from .money import round_money

NO_DEBT = "none"

DEFAULT_CATEGORY = "Other"

# Display colors for the built-in categories
CATEGORY_COLORS: dict[str, str] = {
    "Food": "#3B82F6",
    "Groceries": "#10B981",
    "Transportation": "#F59E0B",
    "Utilities": "#EF4444",
    "Entertainment": "#8B5CF6",
    "Healthcare": "#06B6D4",
    "Shopping": "#F97316",
    "Travel": "#84CC16",
    "Other": "#6B7280",
}

DEFAULT_CATEGORIES = list(CATEGORY_COLORS)


def category_color(category: str) -> str:
    """Color for a category, falling back to the 'Other' gray."""
    return CATEGORY_COLORS.get(category, CATEGORY_COLORS[DEFAULT_CATEGORY])


# ============================================================================
# Partners
# ============================================================================


class Partner(BaseModel):
    """One of the two people sharing expenses."""

    id: str = Field(min_length=1)
    name: str


class PartnerPair(BaseModel):
    """The fixed pair of partners a ledger is split between."""

    model_config = ConfigDict(frozen=True)

    first: Partner
    second: Partner

    @model_validator(mode="after")
    def _distinct_ids(self) -> "PartnerPair":
        if self.first.id == self.second.id:
            raise ValueError(f"Partners must have distinct ids, got '{self.first.id}' twice")
        return self

    @property
    def ids(self) -> tuple[str, str]:
        return (self.first.id, self.second.id)

    def __contains__(self, partner_id: object) -> bool:
        return partner_id in self.ids

    def other(self, partner_id: str) -> str:
        """Return the id of the partner that is not `partner_id`."""
        if partner_id == self.first.id:
            return self.second.id
        if partner_id == self.second.id:
            return self.first.id
        raise UnknownPartnerError(partner_id)

    def name_of(self, partner_id: str) -> str:
        """Display name for a partner id."""
        for partner in (self.first, self.second):
            if partner.id == partner_id:
                return partner.name
        raise UnknownPartnerError(partner_id)


# ============================================================================
# Ledger records
# ============================================================================


class Expense(BaseModel):
    """Money one partner spent that benefits both."""

    id: int | None = None
    amount: Decimal = Field(ge=0)
    description: str
    category: str = DEFAULT_CATEGORY
    paid_by_id: str
    date: date
    created_at: datetime | None = None


class Settlement(BaseModel):
    """A direct reimbursement between the partners."""

    id: int | None = None
    amount: Decimal = Field(ge=0)
    paid_by: str
    paid_to: str
    description: str = "Settlement"
    date: date
    created_at: datetime | None = None


class ExpenseFilters(BaseModel):
    """Query parameters for filtering and sorting expenses."""

    category: str | None = None
    paid_by: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    search: str | None = None
    sort_by: Literal["date", "amount", "description", "category", "paid_by"] = "date"
    sort_order: Literal["asc", "desc"] = "desc"
    limit: int | None = Field(default=None, ge=1)


# ============================================================================
# Calculation results
# ============================================================================


class BalanceSummary(BaseModel):
    """Financial position between the two partners.

    Positive balances mean the partner is owed money, negative balances mean
    the partner owes money. `who_owes_whom` holds the debtor's id, or "none"
    when the partners are even. Amounts are exact; use `display()` for the
    two-place rounded view.
    """

    model_config = ConfigDict(frozen=True)

    combined_total: Decimal
    paid_by: dict[str, Decimal]
    fair_share: Decimal
    balance: dict[str, Decimal]
    settlements_paid_out: dict[str, Decimal]
    settlements_received: dict[str, Decimal]
    net_balance: Decimal
    who_owes_whom: str = NO_DEBT
    creditor: str | None = None
    includes_settlements: bool = False

    @property
    def is_settled(self) -> bool:
        return self.who_owes_whom == NO_DEBT

    def display(self) -> "BalanceSummary":
        """Copy of this summary with every amount rounded to cents."""

        def _round_all(values: dict[str, Decimal]) -> dict[str, Decimal]:
            return {key: round_money(value) for key, value in values.items()}

        return self.model_copy(
            update={
                "combined_total": round_money(self.combined_total),
                "paid_by": _round_all(self.paid_by),
                "fair_share": round_money(self.fair_share),
                "balance": _round_all(self.balance),
                "settlements_paid_out": _round_all(self.settlements_paid_out),
                "settlements_received": _round_all(self.settlements_received),
                "net_balance": round_money(self.net_balance),
            }
        )


class PartnerBalance(BaseModel):
    """Per-partner figures shown on the dashboard."""

    partner_id: str
    name: str
    total_paid: Decimal
    expense_count: int
    fair_share: Decimal
    balance: Decimal  # expenses only
    settlements_out: Decimal
    settlements_in: Decimal
    partnership_balance: Decimal  # after settlements


# ============================================================================
# Analytics
# ============================================================================


class ExpenseSummary(BaseModel):
    """Totals for the expenses one partner paid."""

    partner_id: str
    total_amount: Decimal
    expense_count: int
    average_amount: Decimal
    last_expense_date: date | None = None


class CategoryBreakdown(BaseModel):
    """Spend in one category."""

    category: str
    amount: Decimal
    count: int
    percentage: Decimal
    average: Decimal
    color: str


class MonthlyTrend(BaseModel):
    """Spend in one calendar month."""

    month: str  # YYYY-MM
    total: Decimal
    by_partner: dict[str, Decimal]
    expense_count: int
    average: Decimal


class PartnerComparison(BaseModel):
    """What each partner paid in one period."""

    period: str  # YYYY-MM or YYYY-Www
    amounts: dict[str, Decimal]
    counts: dict[str, int]
    difference: Decimal  # first partner minus second partner


class BalanceHistoryPoint(BaseModel):
    """Reconciled balance after one record, from the first partner's view."""

    date: date
    kind: Literal["expense", "settlement"]
    record_id: int | None = None
    amount: Decimal
    balance: Decimal
    cumulative_expenses: Decimal
    cumulative_settlements: Decimal


class CategoryTrend(BaseModel):
    """Category spend in the current window compared with the previous one."""

    category: str
    amount: Decimal
    previous_amount: Decimal
    change: Decimal
    change_percent: Decimal
    trend: Literal["up", "down", "stable"]


class SettlementSummary(BaseModel):
    """Settlement totals for the dashboard."""

    total_settlements: int
    total_amount: Decimal
    last_settlement_date: date | None = None
    pending_balance: Decimal


class DashboardData(BaseModel):
    """Everything the dashboard view needs in one payload."""

    total_expenses: Decimal
    expense_count: int
    total_settlements: Decimal
    settlement_count: int
    expenses_by_category: dict[str, Decimal]
    monthly_expenses: dict[str, Decimal]
    partner_balances: list[PartnerBalance]
    balance: BalanceSummary
    recent_expenses: list[Expense]
    recent_settlements: list[Settlement]
