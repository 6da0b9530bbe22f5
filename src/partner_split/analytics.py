"""Analytics over expense and settlement snapshots.

These functions feed the dashboard and the reports. Like the balance
calculator they are pure and keep amounts as exact Decimals.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import Literal, TypeVar

from .exceptions import UnknownPartnerError
from .models import (
    BalanceHistoryPoint,
    CategoryBreakdown,
    CategoryTrend,
    Expense,
    ExpenseFilters,
    ExpenseSummary,
    MonthlyTrend,
    PartnerComparison,
    PartnerPair,
    Settlement,
    SettlementSummary,
    category_color,
)
from .money import ZERO

HUNDRED = Decimal("100")

Record = TypeVar("Record", Expense, Settlement)


# ============================================================================
# Filtering
# ============================================================================


def _sort_key(sort_by: str):
    if sort_by == "amount":
        return lambda e: e.amount
    if sort_by == "description":
        return lambda e: e.description.lower()
    if sort_by == "category":
        return lambda e: e.category.lower()
    if sort_by == "paid_by":
        return lambda e: e.paid_by_id
    return lambda e: (e.date, e.id or 0)


def filter_expenses(
    expenses: Iterable[Expense], filters: ExpenseFilters | None = None
) -> list[Expense]:
    """
    Apply expense filters, sorting and limit.

    Args:
        expenses: Expense records
        filters: Optional filters (defaults sort newest first)

    Returns:
        Matching expenses
    """
    filters = filters or ExpenseFilters()
    result = list(expenses)

    if filters.category:
        result = [e for e in result if e.category == filters.category]
    if filters.paid_by:
        result = [e for e in result if e.paid_by_id == filters.paid_by]
    if filters.start_date:
        result = [e for e in result if e.date >= filters.start_date]
    if filters.end_date:
        result = [e for e in result if e.date <= filters.end_date]
    if filters.min_amount is not None:
        result = [e for e in result if e.amount >= filters.min_amount]
    if filters.max_amount is not None:
        result = [e for e in result if e.amount <= filters.max_amount]
    if filters.search:
        needle = filters.search.lower()
        result = [
            e
            for e in result
            if needle in e.description.lower() or needle in e.category.lower()
        ]

    result.sort(key=_sort_key(filters.sort_by), reverse=filters.sort_order == "desc")

    if filters.limit is not None:
        result = result[: filters.limit]
    return result


def recent(records: Iterable[Record], limit: int = 5) -> list[Record]:
    """Most recent records first."""
    ordered = sorted(records, key=lambda r: (r.date, r.id or 0), reverse=True)
    return ordered[:limit]


# ============================================================================
# Summaries
# ============================================================================


def expense_summary(expenses: Iterable[Expense], partner_id: str) -> ExpenseSummary:
    """Totals for the expenses paid by one partner."""
    paid = [e for e in expenses if e.paid_by_id == partner_id]
    total = sum((e.amount for e in paid), ZERO)
    count = len(paid)

    return ExpenseSummary(
        partner_id=partner_id,
        total_amount=total,
        expense_count=count,
        average_amount=total / count if count else ZERO,
        last_expense_date=max((e.date for e in paid), default=None),
    )


def settlement_summary(
    settlements: Iterable[Settlement], pending_balance: Decimal
) -> SettlementSummary:
    """Count, total and last date of settlements, plus what is still owed."""
    settlements = list(settlements)
    return SettlementSummary(
        total_settlements=len(settlements),
        total_amount=sum((s.amount for s in settlements), ZERO),
        last_settlement_date=max((s.date for s in settlements), default=None),
        pending_balance=pending_balance,
    )


def category_breakdown(expenses: Iterable[Expense]) -> list[CategoryBreakdown]:
    """
    Spend per category, largest first.

    Args:
        expenses: Expense records

    Returns:
        One row per category with amount, count, share of total and average
    """
    amounts: dict[str, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[str, int] = defaultdict(int)
    for expense in expenses:
        amounts[expense.category] += expense.amount
        counts[expense.category] += 1

    total = sum(amounts.values(), ZERO)

    rows = [
        CategoryBreakdown(
            category=category,
            amount=amount,
            count=counts[category],
            percentage=amount / total * HUNDRED if total else ZERO,
            average=amount / counts[category],
            color=category_color(category),
        )
        for category, amount in amounts.items()
    ]
    rows.sort(key=lambda row: (-row.amount, row.category))
    return rows


# ============================================================================
# Time series
# ============================================================================


def _month_key(day: date) -> str:
    return day.strftime("%Y-%m")


def _week_key(day: date) -> str:
    iso = day.isocalendar()
    return f"{iso.year}-W{iso.week:02d}"


def monthly_trends(
    expenses: Iterable[Expense], partners: PartnerPair
) -> list[MonthlyTrend]:
    """
    Spend per calendar month, oldest first.

    Args:
        expenses: Expense records
        partners: The partner pair

    Returns:
        One row per month with total, per-partner totals, count and average
    """
    totals: dict[str, dict[str, Decimal]] = {}
    counts: dict[str, int] = defaultdict(int)

    for expense in expenses:
        month = _month_key(expense.date)
        by_partner = totals.setdefault(month, {pid: ZERO for pid in partners.ids})
        if expense.paid_by_id not in by_partner:
            raise UnknownPartnerError(expense.paid_by_id)
        by_partner[expense.paid_by_id] += expense.amount
        counts[month] += 1

    rows = []
    for month in sorted(totals):
        total = sum(totals[month].values(), ZERO)
        rows.append(
            MonthlyTrend(
                month=month,
                total=total,
                by_partner=totals[month],
                expense_count=counts[month],
                average=total / counts[month],
            )
        )
    return rows


def partner_comparison(
    expenses: Iterable[Expense],
    partners: PartnerPair,
    granularity: Literal["month", "week"] = "month",
) -> list[PartnerComparison]:
    """
    What each partner paid per period, oldest first.

    Week periods are ISO weeks (YYYY-Www).
    """
    period_key = _week_key if granularity == "week" else _month_key

    amounts: dict[str, dict[str, Decimal]] = {}
    counts: dict[str, dict[str, int]] = {}

    for expense in expenses:
        period = period_key(expense.date)
        period_amounts = amounts.setdefault(period, {pid: ZERO for pid in partners.ids})
        period_counts = counts.setdefault(period, {pid: 0 for pid in partners.ids})
        if expense.paid_by_id not in period_amounts:
            raise UnknownPartnerError(expense.paid_by_id)
        period_amounts[expense.paid_by_id] += expense.amount
        period_counts[expense.paid_by_id] += 1

    first, second = partners.ids
    return [
        PartnerComparison(
            period=period,
            amounts=amounts[period],
            counts=counts[period],
            difference=amounts[period][first] - amounts[period][second],
        )
        for period in sorted(amounts)
    ]


def balance_history(
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
    partners: PartnerPair,
) -> list[BalanceHistoryPoint]:
    """
    Running reconciled balance of the first partner, one point per record.

    Records are ordered by date; on the same date expenses come before
    settlements and input order is kept. An expense moves the balance by half
    its amount, a settlement by its full amount, matching `balance.reconcile`.
    """
    first, second = partners.ids

    events: list[tuple[date, int, int, Expense | Settlement]] = []
    for index, expense in enumerate(expenses):
        events.append((expense.date, 0, index, expense))
    for index, settlement in enumerate(settlements):
        events.append((settlement.date, 1, index, settlement))
    events.sort(key=lambda event: event[:3])

    running = ZERO
    cumulative_expenses = ZERO
    cumulative_settlements = ZERO
    points = []

    for _day, _order, _index, record in events:
        if isinstance(record, Expense):
            half = record.amount / 2
            if record.paid_by_id == first:
                running += half
            elif record.paid_by_id == second:
                running -= half
            else:
                raise UnknownPartnerError(record.paid_by_id)
            cumulative_expenses += record.amount
            kind: Literal["expense", "settlement"] = "expense"
        else:
            if record.paid_by == first and record.paid_to == second:
                running += record.amount
            elif record.paid_by == second and record.paid_to == first:
                running -= record.amount
            else:
                unknown = record.paid_by if record.paid_by not in partners else record.paid_to
                raise UnknownPartnerError(unknown)
            cumulative_settlements += record.amount
            kind = "settlement"

        points.append(
            BalanceHistoryPoint(
                date=record.date,
                kind=kind,
                record_id=record.id,
                amount=record.amount,
                balance=running,
                cumulative_expenses=cumulative_expenses,
                cumulative_settlements=cumulative_settlements,
            )
        )

    return points


def category_trends(
    expenses: Sequence[Expense], as_of: date, period_days: int = 30
) -> list[CategoryTrend]:
    """
    Compare category spend in the last `period_days` with the window before it.

    Args:
        expenses: Expense records
        as_of: Last day of the current window
        period_days: Window length in days

    Returns:
        One row per category seen in either window, largest current spend first
    """
    cutoff = as_of - timedelta(days=period_days)
    previous_cutoff = cutoff - timedelta(days=period_days)

    current = [e for e in expenses if cutoff <= e.date <= as_of]
    previous = [e for e in expenses if previous_cutoff <= e.date < cutoff]

    current_amounts = {row.category: row.amount for row in category_breakdown(current)}
    previous_amounts = {row.category: row.amount for row in category_breakdown(previous)}

    rows = []
    for category in set(current_amounts) | set(previous_amounts):
        amount = current_amounts.get(category, ZERO)
        previous_amount = previous_amounts.get(category, ZERO)
        change = amount - previous_amount
        if change > 0:
            trend: Literal["up", "down", "stable"] = "up"
        elif change < 0:
            trend = "down"
        else:
            trend = "stable"
        rows.append(
            CategoryTrend(
                category=category,
                amount=amount,
                previous_amount=previous_amount,
                change=change,
                change_percent=change / previous_amount * HUNDRED
                if previous_amount
                else ZERO,
                trend=trend,
            )
        )

    rows.sort(key=lambda row: (-row.amount, row.category))
    return rows
