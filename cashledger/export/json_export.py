"""
JSON export document (premium feature).

Builds the data only; writing it to a file or download is the caller's job.
Amounts are emitted as strings so no precision is lost on the way out.
"""

from datetime import datetime
from typing import Iterable, Optional

from cashledger.ledger.aggregates import calculate_summary
from cashledger.models.ledger import Transaction


EXPORT_VERSION = "1.0"


def build_json_export(
    transactions: Iterable[Transaction],
    enterprise_name: Optional[str] = None,
    exported_at: Optional[datetime] = None,
) -> dict:
    """
    Export document with a header, every transaction, and the summary.

    The summary is computed from the exported transactions themselves.
    """
    transactions = list(transactions)
    exported_at = exported_at or datetime.utcnow()
    summary = calculate_summary(transactions)

    return {
        "exportInfo": {
            "enterpriseName": enterprise_name or "HKM Cash",
            "exportDate": exported_at.isoformat(),
            "totalTransactions": len(transactions),
            "version": EXPORT_VERSION,
        },
        "transactions": [
            {
                "id": t.id,
                "date": t.date.isoformat(),
                "type": t.type.value,
                "category": t.category,
                "description": t.description,
                "client": t.client,
                "amount": str(t.amount),
            }
            for t in transactions
        ],
        "summary": {
            "totalIncome": str(summary.total_income),
            "totalExpenses": str(summary.total_expense),
            "balance": str(summary.balance),
        },
    }
