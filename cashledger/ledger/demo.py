"""Synthetic data for demo mode. Never written to any remote store."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from cashledger.models.ledger import Identity, Transaction, TransactionType, generate_id
from cashledger.services.storage import InMemoryTransactionStorage


def sample_transactions(today: Optional[date] = None) -> list[Transaction]:
    """A month of plausible activity ending at ``today``."""
    today = today or date.today()
    start = today.replace(day=1)

    rows = [
        (Decimal("2500"), "Monthly Salary", "Salary", TransactionType.INCOME, 0),
        (Decimal("800"), "Rent Payment", "Housing", TransactionType.EXPENSE, 2),
        (Decimal("120"), "Grocery Shopping", "Food", TransactionType.EXPENSE, 4),
        (Decimal("200"), "Freelance Work", "Freelance", TransactionType.INCOME, 9),
        (Decimal("50"), "Book Purchase", "Entertainment", TransactionType.EXPENSE, 14),
    ]

    transactions = []
    for amount, description, category, type_, offset in rows:
        day = min(start + timedelta(days=offset), today)
        transactions.append(Transaction(
            id=generate_id(),
            amount=amount,
            description=description,
            category=category,
            type=type_,
            date=day,
        ))
    return transactions


def create_demo_storage(identity: Identity) -> InMemoryTransactionStorage:
    """A new, private in-memory ledger seeded with sample data."""
    return InMemoryTransactionStorage(seed={identity.id: sample_transactions()})
