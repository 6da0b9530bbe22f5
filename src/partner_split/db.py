"""SQLite database operations for partner-split."""

import sqlite3
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from .exceptions import RecordNotFoundError
from .models import Expense, Settlement

_EXPENSE_COLUMNS = "id, amount, description, category, paid_by_id, date, created_at"
_SETTLEMENT_COLUMNS = "id, amount, paid_by, paid_to, description, date, created_at"


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        # Amounts are stored as TEXT so Decimal values round-trip exactly
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                amount TEXT NOT NULL,
                description TEXT NOT NULL,
                category TEXT NOT NULL,
                paid_by_id TEXT NOT NULL,
                date DATE NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS settlements (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                amount TEXT NOT NULL,
                paid_by TEXT NOT NULL,
                paid_to TEXT NOT NULL,
                description TEXT NOT NULL,
                date DATE NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    # ========================================================================
    # Expense operations
    # ========================================================================

    @staticmethod
    def _row_to_expense(row: sqlite3.Row) -> Expense:
        return Expense(
            id=row["id"],
            amount=Decimal(row["amount"]),
            description=row["description"],
            category=row["category"],
            paid_by_id=row["paid_by_id"],
            date=date.fromisoformat(row["date"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def add_expense(self, expense: Expense) -> Expense:
        """Insert an expense and return it with its id and timestamp."""
        created_at = expense.created_at or datetime.now()
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO expenses (
                amount, description, category, paid_by_id, date, created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                str(expense.amount),
                expense.description,
                expense.category,
                expense.paid_by_id,
                expense.date.isoformat(),
                created_at.isoformat(),
            ),
        )
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert expense record")
        return expense.model_copy(update={"id": row_id, "created_at": created_at})

    def get_expense(self, expense_id: int) -> Expense:
        """Get an expense by id."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT {_EXPENSE_COLUMNS} FROM expenses WHERE id = ?", (expense_id,)
        )
        row = cursor.fetchone()
        if not row:
            raise RecordNotFoundError("expense", expense_id)
        return self._row_to_expense(row)

    def get_expenses(self) -> list[Expense]:
        """Get all expenses, newest first."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT {_EXPENSE_COLUMNS} FROM expenses ORDER BY date DESC, id DESC"
        )
        return [self._row_to_expense(row) for row in cursor.fetchall()]

    def update_expense(self, expense: Expense) -> Expense:
        """Overwrite a stored expense with new field values."""
        if expense.id is None:
            raise ValueError("Cannot update an expense without an id")
        cursor = self.conn.cursor()
        cursor.execute(
            """
            UPDATE expenses SET
                amount = ?, description = ?, category = ?, paid_by_id = ?, date = ?
            WHERE id = ?
            """,
            (
                str(expense.amount),
                expense.description,
                expense.category,
                expense.paid_by_id,
                expense.date.isoformat(),
                expense.id,
            ),
        )
        self.conn.commit()
        if cursor.rowcount == 0:
            raise RecordNotFoundError("expense", expense.id)
        return self.get_expense(expense.id)

    def delete_expense(self, expense_id: int):
        """Delete an expense by id."""
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
        self.conn.commit()
        if cursor.rowcount == 0:
            raise RecordNotFoundError("expense", expense_id)

    # ========================================================================
    # Settlement operations
    # ========================================================================

    @staticmethod
    def _row_to_settlement(row: sqlite3.Row) -> Settlement:
        return Settlement(
            id=row["id"],
            amount=Decimal(row["amount"]),
            paid_by=row["paid_by"],
            paid_to=row["paid_to"],
            description=row["description"],
            date=date.fromisoformat(row["date"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def add_settlement(self, settlement: Settlement) -> Settlement:
        """Insert a settlement and return it with its id and timestamp."""
        created_at = settlement.created_at or datetime.now()
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO settlements (
                amount, paid_by, paid_to, description, date, created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                str(settlement.amount),
                settlement.paid_by,
                settlement.paid_to,
                settlement.description,
                settlement.date.isoformat(),
                created_at.isoformat(),
            ),
        )
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert settlement record")
        return settlement.model_copy(update={"id": row_id, "created_at": created_at})

    def get_settlement(self, settlement_id: int) -> Settlement:
        """Get a settlement by id."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT {_SETTLEMENT_COLUMNS} FROM settlements WHERE id = ?",
            (settlement_id,),
        )
        row = cursor.fetchone()
        if not row:
            raise RecordNotFoundError("settlement", settlement_id)
        return self._row_to_settlement(row)

    def get_settlements(
        self,
        paid_by: str | None = None,
        paid_to: str | None = None,
        limit: int | None = None,
    ) -> list[Settlement]:
        """Get settlements, newest first, optionally filtered by direction."""
        query = f"SELECT {_SETTLEMENT_COLUMNS} FROM settlements"
        clauses = []
        params: list[str | int] = []
        if paid_by:
            clauses.append("paid_by = ?")
            params.append(paid_by)
        if paid_to:
            clauses.append("paid_to = ?")
            params.append(paid_to)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY date DESC, id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        cursor = self.conn.cursor()
        cursor.execute(query, params)
        return [self._row_to_settlement(row) for row in cursor.fetchall()]
