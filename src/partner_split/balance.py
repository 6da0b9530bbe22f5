"""Core balance calculation between the two partners.

Every expense is split evenly. A partner's balance is what they paid minus
their fair share; positive means they are owed money, negative means they owe.
Settlements are netted on top: paying one out reduces what the payer owes and
receiving one reduces what the recipient is owed.

All functions here are pure. Arithmetic stays on exact Decimals; rounding is
left to presentation (see `money.round_money`).
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from .exceptions import UnknownPartnerError
from .models import NO_DEBT, BalanceSummary, Expense, PartnerPair, Settlement
from .money import ZERO

logger = logging.getLogger(__name__)


def _zeroed(partners: PartnerPair) -> dict[str, Decimal]:
    return {partner_id: ZERO for partner_id in partners.ids}


def _add(totals: dict[str, Decimal], partner_id: str, amount: Decimal) -> None:
    if partner_id not in totals:
        raise UnknownPartnerError(partner_id)
    totals[partner_id] += amount


def sum_paid(expenses: Iterable[Expense], partners: PartnerPair) -> dict[str, Decimal]:
    """
    Total amount each partner paid.

    Args:
        expenses: Expense records
        partners: The partner pair

    Returns:
        Mapping of partner id to amount paid

    Raises:
        UnknownPartnerError: If an expense was paid by someone outside the pair
    """
    paid = _zeroed(partners)
    for expense in expenses:
        _add(paid, expense.paid_by_id, expense.amount)
    return paid


def determine_debtor(
    balance: dict[str, Decimal], partners: PartnerPair
) -> tuple[str, str | None]:
    """
    Work out who owes whom from a pair of balances.

    Returns:
        Tuple of (debtor id or "none", creditor id or None)
    """
    first, second = partners.ids
    if balance[first] == 0:
        return NO_DEBT, None
    if balance[first] < 0:
        return first, second
    return second, first


def calculate_balance(
    expenses: Iterable[Expense], partners: PartnerPair
) -> BalanceSummary:
    """
    Compute the expense-only balance between the partners.

    Args:
        expenses: Expense records (order does not matter)
        partners: The partner pair

    Returns:
        Balance summary with zero settlement totals
    """
    return _summarize(expenses, (), partners, includes_settlements=False)


def reconcile(
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
    partners: PartnerPair,
) -> BalanceSummary:
    """
    Compute the balance between the partners with settlements netted in.

    Args:
        expenses: Expense records (order does not matter)
        settlements: Settlement records (order does not matter)
        partners: The partner pair

    Returns:
        Balance summary reflecting expenses and settlements
    """
    return _summarize(expenses, settlements, partners, includes_settlements=True)


def _summarize(
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
    partners: PartnerPair,
    includes_settlements: bool,
) -> BalanceSummary:
    expenses = list(expenses)

    combined_total = sum((expense.amount for expense in expenses), ZERO)
    paid = sum_paid(expenses, partners)
    fair_share = combined_total / 2

    paid_out = _zeroed(partners)
    received = _zeroed(partners)
    for settlement in settlements:
        _add(paid_out, settlement.paid_by, settlement.amount)
        _add(received, settlement.paid_to, settlement.amount)

    balance = {
        partner_id: paid[partner_id] - fair_share + paid_out[partner_id] - received[partner_id]
        for partner_id in partners.ids
    }

    debtor, creditor = determine_debtor(balance, partners)
    net_balance = abs(balance[partners.first.id])

    logger.debug(
        f"Balance over {len(expenses)} expenses: total={combined_total}, "
        f"net={net_balance}, debtor={debtor}"
    )

    return BalanceSummary(
        combined_total=combined_total,
        paid_by=paid,
        fair_share=fair_share,
        balance=balance,
        settlements_paid_out=paid_out,
        settlements_received=received,
        net_balance=net_balance,
        who_owes_whom=debtor,
        creditor=creditor,
        includes_settlements=includes_settlements,
    )
