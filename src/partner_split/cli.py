"""CLI for partner-split using Typer."""

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .db import Database
from .exceptions import PartnerSplitError
from .mcp_server import run_server
from .models import DEFAULT_CATEGORIES, BalanceSummary, ExpenseFilters, PartnerPair
from .money import format_money, round_money, to_jsonable
from .service import LedgerService
from .ui import select_category_interactive, select_partner_interactive

app = typer.Typer(
    name="partner-split",
    help="Track shared expenses between two partners and see who owes whom",
)
report_app = typer.Typer(help="Analytics reports")
app.add_typer(report_app, name="report")

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def ledger_session(verbose: bool) -> Iterator[LedgerService]:
    """Open the ledger for one command and report failures consistently."""
    setup_logging(verbose)
    db = None
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        yield LedgerService(settings, db)
    except (PartnerSplitError, ValueError) as e:
        # Includes pydantic validation errors for malformed amounts
        console.print(f"\n[bold yellow]⚠️  {e}[/bold yellow]\n")
        if verbose:
            raise
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


def print_json(data: Any):
    """Print models as JSON with amounts rounded to cents."""
    console.print_json(json.dumps(to_jsonable(data)))


def money(amount: Decimal, use_color: bool = True) -> str:
    """
    Format money in accounting style.

    Negative amounts use parentheses: ($85.02)
    """
    formatted = format_money(amount)
    if not use_color:
        return formatted
    if round_money(amount) < 0:
        return f"[red]{formatted}[/red]"
    return f"[green]{formatted}[/green]"


def display_balance(summary: BalanceSummary, partners: PartnerPair):
    """Display a balance summary as a table plus a who-owes-whom line."""
    shown = summary.display()

    title = "Balance (with settlements)" if shown.includes_settlements else "Balance"
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Partner", style="cyan")
    table.add_column("Paid", justify="right")
    table.add_column("Fair share", justify="right")
    if shown.includes_settlements:
        table.add_column("Settled out", justify="right")
        table.add_column("Settled in", justify="right")
    table.add_column("Balance", justify="right")

    for partner in (partners.first, partners.second):
        row = [
            partner.name,
            money(shown.paid_by[partner.id], use_color=False),
            money(shown.fair_share, use_color=False),
        ]
        if shown.includes_settlements:
            row.append(money(shown.settlements_paid_out[partner.id], use_color=False))
            row.append(money(shown.settlements_received[partner.id], use_color=False))
        row.append(money(shown.balance[partner.id]))
        table.add_row(*row)

    console.print()
    console.print(table)
    console.print(f"  Combined total: {money(shown.combined_total, use_color=False)}")

    if summary.is_settled:
        console.print("  [green]✓ All square, nobody owes anything[/green]\n")
    else:
        debtor = partners.name_of(summary.who_owes_whom)
        creditor = partners.name_of(summary.creditor or "")
        console.print(
            f"  [bold]{debtor} owes {creditor} "
            f"{money(shown.net_balance, use_color=False)}[/bold]\n"
        )


@app.command()
def balance(
    expenses_only: bool = typer.Option(
        False, "--expenses-only", help="Ignore settlements"
    ),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show who owes whom."""
    with ledger_session(verbose) as service:
        summary = service.get_balance(include_settlements=not expenses_only)
        if as_json:
            print_json(summary)
        else:
            display_balance(summary, service.partners)


@app.command()
def dashboard(
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show totals, balances and recent activity."""
    with ledger_session(verbose) as service:
        data = service.get_dashboard()
        if as_json:
            print_json(data)
            return

        console.print("\n[bold]Dashboard[/bold]")
        console.print(
            f"  Expenses: {data.expense_count} totalling "
            f"{money(data.total_expenses, use_color=False)}"
        )
        console.print(
            f"  Settlements: {data.settlement_count} totalling "
            f"{money(data.total_settlements, use_color=False)}"
        )
        display_balance(data.balance, service.partners)

        table = Table(title="Recent Expenses", header_style="bold magenta")
        table.add_column("Date", style="dim")
        table.add_column("Description", style="cyan")
        table.add_column("Category", style="yellow")
        table.add_column("Paid by")
        table.add_column("Amount", justify="right")
        for expense in data.recent_expenses:
            table.add_row(
                str(expense.date),
                expense.description,
                expense.category,
                service.partners.name_of(expense.paid_by_id),
                money(expense.amount, use_color=False),
            )
        console.print(table)


@app.command("add-expense")
def add_expense(
    amount: str = typer.Argument(..., help="Amount paid, e.g. 42.50"),
    description: str = typer.Argument(..., help="What it was for"),
    paid_by: str | None = typer.Option(
        None, "--paid-by", "-p", help="Partner id who paid (prompted if omitted)"
    ),
    category: str | None = typer.Option(
        None, "--category", "-c", help="Expense category"
    ),
    pick_category: bool = typer.Option(
        False, "--pick-category", "-i", help="Choose the category interactively"
    ),
    on: str | None = typer.Option(None, "--date", help="Date (YYYY-MM-DD), default today"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Record a shared expense (split 50/50)."""
    with ledger_session(verbose) as service:
        if paid_by is None:
            paid_by = select_partner_interactive(service.partners, "Who paid?")
            if paid_by is None:
                console.print("[yellow]Cancelled.[/yellow]")
                return

        if category is None and pick_category:
            category = select_category_interactive(DEFAULT_CATEGORIES, description)

        expense = service.add_expense(
            amount=amount,
            description=description,
            paid_by_id=paid_by,
            category=category or "Other",
            expense_date=date.fromisoformat(on) if on else None,
        )
        console.print(
            f"\n[bold green]✓ Recorded expense #{expense.id}:[/bold green] "
            f"{expense.description} {money(expense.amount, use_color=False)} "
            f"paid by {service.partners.name_of(expense.paid_by_id)}\n"
        )


@app.command("delete-expense")
def delete_expense(
    expense_id: int = typer.Argument(..., help="Expense id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete a recorded expense."""
    with ledger_session(verbose) as service:
        service.delete_expense(expense_id)
        console.print(f"[green]✓ Deleted expense #{expense_id}[/green]")


@app.command()
def settle(
    amount: str | None = typer.Option(
        None, "--amount", "-a", help="Amount paid (default: full outstanding balance)"
    ),
    paid_by: str | None = typer.Option(
        None, "--paid-by", help="Partner id paying (default: whoever owes)"
    ),
    paid_to: str | None = typer.Option(
        None, "--paid-to", help="Partner id receiving (default: the other partner)"
    ),
    description: str = typer.Option("Settlement", "--description", "-d"),
    on: str | None = typer.Option(None, "--date", help="Date (YYYY-MM-DD), default today"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Record a settlement payment between the partners."""
    with ledger_session(verbose) as service:
        if not yes:
            display_balance(service.get_balance(), service.partners)
            confirm = input("Record this settlement? [y/N] ").strip().lower()
            if confirm not in ("y", "yes"):
                console.print("[yellow]Cancelled.[/yellow]")
                return

        settlement = service.add_settlement(
            amount=amount,
            paid_by=paid_by,
            paid_to=paid_to,
            description=description,
            settlement_date=date.fromisoformat(on) if on else None,
        )
        console.print(
            f"\n[bold green]✓ Recorded settlement #{settlement.id}:[/bold green] "
            f"{service.partners.name_of(settlement.paid_by)} paid "
            f"{service.partners.name_of(settlement.paid_to)} "
            f"{money(settlement.amount, use_color=False)}\n"
        )


@app.command()
def expenses(
    category: str | None = typer.Option(None, "--category", "-c"),
    paid_by: str | None = typer.Option(None, "--paid-by", "-p"),
    since: str | None = typer.Option(None, "--since", help="Start date (YYYY-MM-DD)"),
    until: str | None = typer.Option(None, "--until", help="End date (YYYY-MM-DD)"),
    min_amount: str | None = typer.Option(None, "--min"),
    max_amount: str | None = typer.Option(None, "--max"),
    search: str | None = typer.Option(None, "--search", "-s"),
    sort_by: str = typer.Option("date", "--sort-by"),
    order: str = typer.Option("desc", "--order"),
    limit: int | None = typer.Option(None, "--limit", "-n"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List expenses with optional filters."""
    with ledger_session(verbose) as service:
        filters = ExpenseFilters(
            category=category,
            paid_by=paid_by,
            start_date=since,
            end_date=until,
            min_amount=min_amount,
            max_amount=max_amount,
            search=search,
            sort_by=sort_by,
            sort_order=order,
            limit=limit,
        )
        rows = service.list_expenses(filters)
        if as_json:
            print_json(rows)
            return

        table = Table(title=f"Expenses ({len(rows)})", header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Date")
        table.add_column("Description", style="cyan")
        table.add_column("Category", style="yellow")
        table.add_column("Paid by")
        table.add_column("Amount", justify="right")
        for expense in rows:
            table.add_row(
                str(expense.id),
                str(expense.date),
                expense.description,
                expense.category,
                service.partners.name_of(expense.paid_by_id),
                money(expense.amount, use_color=False),
            )
        console.print(table)


@app.command()
def settlements(
    paid_by: str | None = typer.Option(None, "--paid-by"),
    paid_to: str | None = typer.Option(None, "--paid-to"),
    limit: int | None = typer.Option(None, "--limit", "-n"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List settlements."""
    with ledger_session(verbose) as service:
        rows = service.list_settlements(paid_by=paid_by, paid_to=paid_to, limit=limit)
        if as_json:
            print_json(rows)
            return

        table = Table(title=f"Settlements ({len(rows)})", header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Date")
        table.add_column("From", style="cyan")
        table.add_column("To", style="cyan")
        table.add_column("Description")
        table.add_column("Amount", justify="right")
        for settlement in rows:
            table.add_row(
                str(settlement.id),
                str(settlement.date),
                service.partners.name_of(settlement.paid_by),
                service.partners.name_of(settlement.paid_to),
                settlement.description,
                money(settlement.amount, use_color=False),
            )
        console.print(table)


# ============================================================================
# Reports
# ============================================================================


@report_app.command()
def monthly(
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Spend per month."""
    with ledger_session(verbose) as service:
        rows = service.get_monthly_trends()
        if as_json:
            print_json(rows)
            return

        partners = service.partners
        table = Table(title="Monthly Trends", header_style="bold magenta")
        table.add_column("Month")
        table.add_column("Total", justify="right")
        table.add_column(partners.first.name, justify="right")
        table.add_column(partners.second.name, justify="right")
        table.add_column("Count", justify="right")
        table.add_column("Average", justify="right")
        for row in rows:
            table.add_row(
                row.month,
                money(row.total, use_color=False),
                money(row.by_partner[partners.first.id], use_color=False),
                money(row.by_partner[partners.second.id], use_color=False),
                str(row.expense_count),
                money(row.average, use_color=False),
            )
        console.print(table)


@report_app.command()
def categories(
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Spend per category."""
    with ledger_session(verbose) as service:
        rows = service.get_category_breakdown()
        if as_json:
            print_json(rows)
            return

        table = Table(title="Category Breakdown", header_style="bold magenta")
        table.add_column("Category", style="yellow")
        table.add_column("Amount", justify="right")
        table.add_column("Share", justify="right")
        table.add_column("Count", justify="right")
        table.add_column("Average", justify="right")
        for row in rows:
            table.add_row(
                row.category,
                money(row.amount, use_color=False),
                f"{round_money(row.percentage)}%",
                str(row.count),
                money(row.average, use_color=False),
            )
        console.print(table)


@report_app.command()
def partners(
    granularity: str = typer.Option("month", "--granularity", "-g", help="month or week"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """What each partner paid per period."""
    with ledger_session(verbose) as service:
        if granularity not in ("month", "week"):
            raise ValueError(f"Granularity must be 'month' or 'week', got '{granularity}'")
        rows = service.get_partner_comparison(granularity)  # type: ignore[arg-type]
        if as_json:
            print_json(rows)
            return

        pair = service.partners
        table = Table(title="Partner Comparison", header_style="bold magenta")
        table.add_column("Period")
        table.add_column(pair.first.name, justify="right")
        table.add_column(pair.second.name, justify="right")
        table.add_column("Difference", justify="right")
        for row in rows:
            table.add_row(
                row.period,
                f"{money(row.amounts[pair.first.id], use_color=False)} "
                f"({row.counts[pair.first.id]})",
                f"{money(row.amounts[pair.second.id], use_color=False)} "
                f"({row.counts[pair.second.id]})",
                money(row.difference),
            )
        console.print(table)


@report_app.command()
def history(
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Running balance over time."""
    with ledger_session(verbose) as service:
        points = service.get_balance_history()
        if as_json:
            print_json(points)
            return

        first = service.partners.first.name
        table = Table(
            title=f"Balance History ({first}'s view)", header_style="bold magenta"
        )
        table.add_column("Date")
        table.add_column("Kind")
        table.add_column("Amount", justify="right")
        table.add_column("Balance", justify="right")
        table.add_column("Cumulative expenses", justify="right")
        table.add_column("Cumulative settlements", justify="right")
        for point in points:
            table.add_row(
                str(point.date),
                point.kind,
                money(point.amount, use_color=False),
                money(point.balance),
                money(point.cumulative_expenses, use_color=False),
                money(point.cumulative_settlements, use_color=False),
            )
        console.print(table)


@report_app.command()
def trends(
    days: int = typer.Option(30, "--days", help="Window length in days"),
    as_of: str | None = typer.Option(None, "--as-of", help="Window end (YYYY-MM-DD)"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Category spend compared with the previous window."""
    with ledger_session(verbose) as service:
        rows = service.get_category_trends(
            as_of=date.fromisoformat(as_of) if as_of else None, period_days=days
        )
        if as_json:
            print_json(rows)
            return

        arrows = {"up": "[red]▲[/red]", "down": "[green]▼[/green]", "stable": "–"}
        table = Table(title=f"Category Trends ({days} days)", header_style="bold magenta")
        table.add_column("Category", style="yellow")
        table.add_column("Current", justify="right")
        table.add_column("Previous", justify="right")
        table.add_column("Change", justify="right")
        table.add_column("Trend", justify="center")
        for row in rows:
            table.add_row(
                row.category,
                money(row.amount, use_color=False),
                money(row.previous_amount, use_color=False),
                f"{round_money(row.change_percent)}%",
                arrows[row.trend],
            )
        console.print(table)


@app.command()
def mcp():
    """Start the MCP server exposing balances and analytics as tools."""
    run_server()


if __name__ == "__main__":
    app()
