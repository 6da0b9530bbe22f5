"""Supabase (PostgREST) table client for hosted expense and settlement rows."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import httpx

from ..exceptions import RecordNotFoundError, SupabaseAPIError
from ..models import Expense, Settlement

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def expense_from_row(row: dict[str, Any]) -> Expense:
    """Map an `expenses` table row onto an Expense."""
    return Expense(
        id=row["id"],
        amount=Decimal(str(row["amount"])),
        description=row["description"],
        category=row.get("category") or "Other",
        paid_by_id=row["paid_by_id"],
        date=date.fromisoformat(row["date"]),
        created_at=_parse_timestamp(row.get("created_at")),
    )


def settlement_from_row(row: dict[str, Any]) -> Settlement:
    """Map a `settlements` table row onto a Settlement."""
    return Settlement(
        id=row["id"],
        amount=Decimal(str(row["amount"])),
        paid_by=row["paid_by_id"],
        paid_to=row["paid_to_id"],
        description=row.get("description") or "Settlement",
        date=date.fromisoformat(row["date"]),
        created_at=_parse_timestamp(row.get("created_at")),
    )


class SupabaseClient:
    """Client for the Supabase REST API (PostgREST).

    Expects `expenses` and `settlements` tables with integer identity ids and
    the partner ids stored in `paid_by_id` / `paid_to_id`.
    """

    def __init__(self, url: str, api_key: str):
        """Initialize the Supabase client."""
        self.url = url.rstrip("/")
        self.client = httpx.Client(
            base_url=f"{self.url}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=30.0,
        )

    def close(self):
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        try:
            response = self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SupabaseAPIError(
                f"{method} {path} failed with {e.response.status_code}: "
                f"{e.response.text[:500]}"
            ) from e
        except httpx.HTTPError as e:
            raise SupabaseAPIError(f"{method} {path} failed: {e}") from e

        if not response.content:
            return None
        return response.json()

    # ========================================================================
    # Expenses
    # ========================================================================

    def get_expenses(self) -> list[Expense]:
        """Get all expenses, newest first."""
        rows = self._request(
            "GET", "/expenses", params={"select": "*", "order": "date.desc,id.desc"}
        )
        expenses = [expense_from_row(row) for row in rows or []]
        logger.debug(f"Fetched {len(expenses)} expenses from Supabase")
        return expenses

    def get_expense(self, expense_id: int) -> Expense:
        """Get one expense by id."""
        rows = self._request(
            "GET", "/expenses", params={"select": "*", "id": f"eq.{expense_id}"}
        )
        if not rows:
            raise RecordNotFoundError("expense", expense_id)
        return expense_from_row(rows[0])

    def add_expense(self, expense: Expense) -> Expense:
        """Insert an expense and return the stored row."""
        payload = {
            "amount": str(expense.amount),
            "description": expense.description,
            "category": expense.category,
            "paid_by_id": expense.paid_by_id,
            "date": expense.date.isoformat(),
        }
        rows = self._request(
            "POST",
            "/expenses",
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        return expense_from_row(rows[0])

    def update_expense(self, expense: Expense) -> Expense:
        """Overwrite a stored expense with new field values."""
        if expense.id is None:
            raise ValueError("Cannot update an expense without an id")
        payload = {
            "amount": str(expense.amount),
            "description": expense.description,
            "category": expense.category,
            "paid_by_id": expense.paid_by_id,
            "date": expense.date.isoformat(),
        }
        rows = self._request(
            "PATCH",
            "/expenses",
            params={"id": f"eq.{expense.id}"},
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise RecordNotFoundError("expense", expense.id)
        return expense_from_row(rows[0])

    def delete_expense(self, expense_id: int):
        """Delete an expense by id."""
        rows = self._request(
            "DELETE",
            "/expenses",
            params={"id": f"eq.{expense_id}"},
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise RecordNotFoundError("expense", expense_id)

    # ========================================================================
    # Settlements
    # ========================================================================

    def get_settlements(
        self,
        paid_by: str | None = None,
        paid_to: str | None = None,
        limit: int | None = None,
    ) -> list[Settlement]:
        """Get settlements, newest first, optionally filtered by direction."""
        params: dict[str, str | int] = {"select": "*", "order": "date.desc,id.desc"}
        if paid_by:
            params["paid_by_id"] = f"eq.{paid_by}"
        if paid_to:
            params["paid_to_id"] = f"eq.{paid_to}"
        if limit is not None:
            params["limit"] = limit

        rows = self._request("GET", "/settlements", params=params)
        settlements = [settlement_from_row(row) for row in rows or []]
        logger.debug(f"Fetched {len(settlements)} settlements from Supabase")
        return settlements

    def add_settlement(self, settlement: Settlement) -> Settlement:
        """Insert a settlement and return the stored row."""
        payload = {
            "amount": str(settlement.amount),
            "paid_by_id": settlement.paid_by,
            "paid_to_id": settlement.paid_to,
            "description": settlement.description,
            "date": settlement.date.isoformat(),
        }
        rows = self._request(
            "POST",
            "/settlements",
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        return settlement_from_row(rows[0])
