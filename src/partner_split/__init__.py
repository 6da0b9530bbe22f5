"""partner-split - Shared expense tracking and balance reconciliation for two partners."""

__version__ = "0.1.0"

from .balance import calculate_balance, reconcile
from .config import Settings, load_settings
from .db import Database
from .models import (
    BalanceSummary,
    Expense,
    Partner,
    PartnerPair,
    Settlement,
)
from .service import LedgerService

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "BalanceSummary",
    "Expense",
    "Partner",
    "PartnerPair",
    "Settlement",
    "calculate_balance",
    "reconcile",
    "LedgerService",
]
