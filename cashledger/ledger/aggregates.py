"""
Aggregate Engine

Pure derivations over a transaction snapshot. Nothing here holds state:
every view is recomputed from the full collection on each call, so a
summary can never drift from the transactions it describes.

Ordering of ranked views (category_totals, monthly_totals): total
descending; equal totals keep the order in which their key was first
seen in the input. Python's sort is stable, which gives that tie-break.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional

from cashledger.models.ledger import (
    KeyTotal,
    MonthlyTotal,
    Summary,
    Transaction,
    TransactionType,
)


def calculate_summary(transactions: Iterable[Transaction]) -> Summary:
    """Total income, total expense and balance."""
    total_income = Decimal("0")
    total_expense = Decimal("0")

    for transaction in transactions:
        if transaction.type == TransactionType.INCOME:
            total_income += transaction.amount
        else:
            total_expense += transaction.amount

    return Summary(total_income=total_income, total_expense=total_expense)


def month_bucket(day: date) -> str:
    """``YYYY-MM`` key for a date."""
    return day.strftime("%Y-%m")


def totals_by(
    transactions: Iterable[Transaction],
    key: Callable[[Transaction], str],
) -> list[KeyTotal]:
    """
    Sum amounts per key, sorted by total descending.

    Ties keep first-encountered order.
    """
    totals: dict[str, Decimal] = {}
    for transaction in transactions:
        k = key(transaction)
        totals[k] = totals.get(k, Decimal("0")) + transaction.amount

    ranked = [KeyTotal(key=k, total=total) for k, total in totals.items()]
    ranked.sort(key=lambda item: item.total, reverse=True)
    return ranked


def _of_type(
    transactions: Iterable[Transaction],
    type_: Optional[TransactionType],
) -> Iterable[Transaction]:
    if type_ is None:
        return transactions
    type_ = TransactionType(type_)
    return (t for t in transactions if t.type == type_)


def category_totals(
    transactions: Iterable[Transaction],
    type_: Optional[TransactionType] = None,
) -> list[KeyTotal]:
    """Per-category totals, optionally restricted to income or expense."""
    return totals_by(_of_type(transactions, type_), lambda t: t.category)


def monthly_totals(
    transactions: Iterable[Transaction],
    type_: Optional[TransactionType] = None,
) -> list[KeyTotal]:
    """Per-month (``YYYY-MM``) totals, optionally restricted to one type."""
    return totals_by(_of_type(transactions, type_), lambda t: month_bucket(t.date))


def monthly_breakdown(transactions: Iterable[Transaction]) -> list[MonthlyTotal]:
    """Income and expense side by side per month, oldest month first."""
    months: dict[str, dict[str, Decimal]] = {}
    for transaction in transactions:
        bucket = months.setdefault(
            month_bucket(transaction.date),
            {"income": Decimal("0"), "expense": Decimal("0")},
        )
        bucket[transaction.type.value] += transaction.amount

    return [
        MonthlyTotal(month=month, income=values["income"], expense=values["expense"])
        for month, values in sorted(months.items())
    ]


def filter_by_date_range(
    transactions: Iterable[Transaction],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[Transaction]:
    """Transactions dated within [start, end]; either bound may be open."""
    return [
        t for t in transactions
        if (start is None or t.date >= start) and (end is None or t.date <= end)
    ]
