"""Categories seeded on first start, before the user has saved any."""

from cashledger.models.ledger import Category, TransactionType


DEFAULT_CATEGORIES = [
    ("Salary", TransactionType.INCOME, "#10B981"),
    ("Freelance", TransactionType.INCOME, "#3B82F6"),
    ("Investments", TransactionType.INCOME, "#8B5CF6"),
    ("Other Income", TransactionType.INCOME, "#EC4899"),
    ("Food", TransactionType.EXPENSE, "#F59E0B"),
    ("Housing", TransactionType.EXPENSE, "#EF4444"),
    ("Transport", TransactionType.EXPENSE, "#6366F1"),
    ("Entertainment", TransactionType.EXPENSE, "#8B5CF6"),
    ("Utilities", TransactionType.EXPENSE, "#14B8A6"),
    ("Healthcare", TransactionType.EXPENSE, "#F97316"),
    ("Other Expense", TransactionType.EXPENSE, "#6B7280"),
]


def get_default_categories() -> list[Category]:
    """Fresh Category objects (new ids on every call)."""
    return [
        Category(name=name, type=type_, color=color)
        for name, type_, color in DEFAULT_CATEGORIES
    ]
