"""Integrity checks run on records before they reach the calculator."""

import logging
from collections.abc import Iterable

from .exceptions import InvalidRecordError, UnknownPartnerError
from .models import Expense, PartnerPair, Settlement

logger = logging.getLogger(__name__)


def validate_expense(expense: Expense, partners: PartnerPair) -> Expense:
    """Reject an expense paid by someone outside the partner pair."""
    if expense.paid_by_id not in partners:
        raise UnknownPartnerError(
            expense.paid_by_id,
            f"Expense {expense.id or '(new)'} was paid by unknown partner "
            f"'{expense.paid_by_id}'",
        )
    return expense


def validate_settlement(settlement: Settlement, partners: PartnerPair) -> Settlement:
    """Reject a settlement that is not a transfer from one partner to the other."""
    for partner_id in (settlement.paid_by, settlement.paid_to):
        if partner_id not in partners:
            raise UnknownPartnerError(
                partner_id,
                f"Settlement {settlement.id or '(new)'} references unknown partner "
                f"'{partner_id}'",
            )
    if settlement.paid_by == settlement.paid_to:
        raise InvalidRecordError(
            f"Settlement {settlement.id or '(new)'} is paid by '{settlement.paid_by}' "
            f"to themselves"
        )
    return settlement


def validate_records(
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
    partners: PartnerPair,
) -> tuple[list[Expense], list[Settlement]]:
    """
    Validate a snapshot of records against the partner pair.

    Args:
        expenses: Expense records
        settlements: Settlement records
        partners: The partner pair

    Returns:
        Tuple of (expenses, settlements) as lists

    Raises:
        UnknownPartnerError: If any record names a partner outside the pair
        InvalidRecordError: If a settlement is paid to its own payer
    """
    checked_expenses = [validate_expense(e, partners) for e in expenses]
    checked_settlements = [validate_settlement(s, partners) for s in settlements]
    logger.debug(
        f"Validated {len(checked_expenses)} expenses and "
        f"{len(checked_settlements)} settlements"
    )
    return checked_expenses, checked_settlements
