"""MCP server for partner-split: exposes balances and analytics as JSON tools."""

import json
import logging
from dataclasses import dataclass
from datetime import date as date_type
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .db import Database
from .exceptions import PartnerSplitError
from .money import to_jsonable
from .service import LedgerService

logger = logging.getLogger(__name__)

mcp_app = FastMCP("partner-split")

# ---------------------------------------------------------------------------
# Session state: one MCP server process serves one conversation
# ---------------------------------------------------------------------------

LEDGER_INSTRUCTIONS = """\
You are helping two partners keep track of shared expenses. Every expense is \
split 50/50; settlements are direct payments between the partners.

- Call get_balance to see who owes whom. Positive balances are owed money, \
negative balances owe money.
- Record new spending with add_expense and repayments with add_settlement.
- Use monthly_trends, category_breakdown, partner_comparison and \
balance_history to answer questions about spending over time.

All amounts are rounded to cents for display only.\
"""


@dataclass
class SessionState:
    """Holds the lazily created service between tool calls."""

    service: LedgerService | None = None
    db: Database | None = None


_state = SessionState()


def _ensure_service() -> LedgerService:
    """Lazily initialize the LedgerService (loads .env config)."""
    if _state.service is None:
        settings = load_settings()
        _state.db = Database(settings.database_path)
        _state.service = LedgerService(settings, _state.db)
    return _state.service


def _dump(data: Any) -> str:
    return json.dumps(to_jsonable(data), indent=2)


def _error(action: str, e: Exception) -> str:
    if isinstance(e, (PartnerSplitError, ValueError)):
        return f"Error: {e}"
    logger.exception(f"Failed to {action}")
    return f"Failed to {action}: {e}"


# ---------------------------------------------------------------------------
# MCP Tools
# ---------------------------------------------------------------------------


@mcp_app.tool()
def get_balance(include_settlements: bool = True) -> str:
    """Current balance between the partners as JSON.

    Args:
        include_settlements: Net settlements into the balance (default true).
    """
    try:
        service = _ensure_service()
        return _dump(service.get_balance(include_settlements=include_settlements))
    except Exception as e:
        return _error("compute balance", e)


@mcp_app.tool()
def get_dashboard() -> str:
    """Totals, per-partner balances and recent activity as JSON."""
    try:
        return _dump(_ensure_service().get_dashboard())
    except Exception as e:
        return _error("build dashboard", e)


@mcp_app.tool()
def monthly_trends() -> str:
    """Spend per month, split by partner, as JSON."""
    try:
        return _dump(_ensure_service().get_monthly_trends())
    except Exception as e:
        return _error("compute monthly trends", e)


@mcp_app.tool()
def category_breakdown() -> str:
    """Spend per category with share of total, as JSON."""
    try:
        return _dump(_ensure_service().get_category_breakdown())
    except Exception as e:
        return _error("compute category breakdown", e)


@mcp_app.tool()
def partner_comparison(granularity: str = "month") -> str:
    """What each partner paid per period, as JSON.

    Args:
        granularity: "month" or "week".
    """
    if granularity not in ("month", "week"):
        return f"Error: granularity must be 'month' or 'week', got '{granularity}'"
    try:
        return _dump(_ensure_service().get_partner_comparison(granularity))  # type: ignore[arg-type]
    except Exception as e:
        return _error("compare partners", e)


@mcp_app.tool()
def balance_history() -> str:
    """Running balance after each expense and settlement, as JSON."""
    try:
        return _dump(_ensure_service().get_balance_history())
    except Exception as e:
        return _error("compute balance history", e)


@mcp_app.tool()
def add_expense(
    amount: str,
    description: str,
    paid_by_id: str,
    category: str = "Other",
    date: str | None = None,
) -> str:
    """Record a shared expense, split 50/50.

    Args:
        amount: Amount paid, e.g. "42.50".
        description: What it was for.
        paid_by_id: Partner id of whoever paid.
        category: Expense category.
        date: ISO date (YYYY-MM-DD); defaults to today.
    """
    try:
        expense = _ensure_service().add_expense(
            amount=amount,
            description=description,
            paid_by_id=paid_by_id,
            category=category,
            expense_date=date_type.fromisoformat(date) if date else None,
        )
        return _dump(expense)
    except Exception as e:
        return _error("add expense", e)


@mcp_app.tool()
def add_settlement(
    amount: str | None = None,
    paid_by: str | None = None,
    paid_to: str | None = None,
    description: str = "Settlement",
) -> str:
    """Record a settlement payment between the partners.

    Args:
        amount: Amount paid; defaults to the full outstanding balance.
        paid_by: Partner id paying; defaults to whoever owes.
        paid_to: Partner id receiving; defaults to the other partner.
        description: Optional note.
    """
    try:
        settlement = _ensure_service().add_settlement(
            amount=amount, paid_by=paid_by, paid_to=paid_to, description=description
        )
        return _dump(settlement)
    except Exception as e:
        return _error("add settlement", e)


# ---------------------------------------------------------------------------
# MCP Prompt
# ---------------------------------------------------------------------------


@mcp_app.prompt()
def ledger_assistant() -> str:
    """Instructions for answering questions about the shared ledger."""
    return LEDGER_INSTRUCTIONS


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_server():
    """Start the MCP server (stdio transport)."""
    mcp_app.run(transport="stdio")
