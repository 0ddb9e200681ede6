"""Tests for the aggregate engine."""

import random
from datetime import date, timedelta
from decimal import Decimal

import pytest

from cashledger.ledger import aggregates
from cashledger.models.ledger import Transaction, TransactionType


def _tx(amount, type_, category="Food", day=date(2025, 1, 15), id_=None):
    return Transaction(
        id=id_ or f"tx-{category}-{amount}-{day.isoformat()}",
        amount=Decimal(amount),
        description="Generated",
        category=category,
        type=type_,
        date=day,
    )


def _random_ledger(rng: random.Random, size: int) -> list[Transaction]:
    categories = ["Food", "Housing", "Salary", "Freelance", "Transport"]
    start = date(2024, 1, 1)
    return [
        Transaction(
            id=f"tx-{i}",
            amount=Decimal(rng.randint(1, 1_000_000)) / 100,
            description=f"Generated {i}",
            category=rng.choice(categories),
            type=rng.choice(list(TransactionType)),
            date=start + timedelta(days=rng.randint(0, 700)),
        )
        for i in range(size)
    ]


class TestCalculateSummary:
    """Tests for income/expense/balance."""

    def test_empty(self):
        summary = aggregates.calculate_summary([])
        assert summary.total_income == Decimal("0")
        assert summary.total_expense == Decimal("0")
        assert summary.balance == Decimal("0")

    def test_sample_ledger(self):
        transactions = [
            _tx("2500", TransactionType.INCOME, "Salary"),
            _tx("800", TransactionType.EXPENSE, "Housing"),
            _tx("120", TransactionType.EXPENSE, "Food"),
            _tx("200", TransactionType.INCOME, "Freelance"),
            _tx("50", TransactionType.EXPENSE, "Entertainment"),
        ]
        summary = aggregates.calculate_summary(transactions)

        assert summary.total_income == Decimal("2700")
        assert summary.total_expense == Decimal("970")
        assert summary.balance == Decimal("1730")

    def test_decimal_sums_are_exact(self):
        transactions = [_tx("0.10", TransactionType.INCOME, id_=f"t{i}") for i in range(3)]
        assert aggregates.calculate_summary(transactions).total_income == Decimal("0.30")

    @pytest.mark.parametrize("seed", range(20))
    def test_summary_matches_reference_sums(self, seed):
        """Balance is always income minus expense, for any ledger."""
        rng = random.Random(seed)
        transactions = _random_ledger(rng, rng.randint(0, 80))

        summary = aggregates.calculate_summary(transactions)

        income = sum(
            (t.amount for t in transactions if t.type == TransactionType.INCOME),
            Decimal("0"),
        )
        expense = sum(
            (t.amount for t in transactions if t.type == TransactionType.EXPENSE),
            Decimal("0"),
        )
        assert summary.total_income == income
        assert summary.total_expense == expense
        assert summary.balance == income - expense

    @pytest.mark.parametrize("seed", range(5))
    def test_summary_ignores_order(self, seed):
        rng = random.Random(seed)
        transactions = _random_ledger(rng, 40)
        shuffled = list(transactions)
        rng.shuffle(shuffled)

        assert aggregates.calculate_summary(shuffled) == aggregates.calculate_summary(transactions)


class TestRankedTotals:
    """Tests for category and month rankings."""

    def test_category_totals_sorted_descending(self):
        transactions = [
            _tx("10", TransactionType.EXPENSE, "Food", id_="a"),
            _tx("800", TransactionType.EXPENSE, "Housing", id_="b"),
            _tx("25", TransactionType.EXPENSE, "Food", id_="c"),
            _tx("60", TransactionType.EXPENSE, "Transport", id_="d"),
        ]
        totals = aggregates.category_totals(transactions)

        assert [t.key for t in totals] == ["Housing", "Transport", "Food"]
        assert totals[2].total == Decimal("35")

    def test_ties_keep_first_seen_order(self):
        transactions = [
            _tx("50", TransactionType.EXPENSE, "Transport", id_="a"),
            _tx("50", TransactionType.EXPENSE, "Food", id_="b"),
            _tx("50", TransactionType.EXPENSE, "Housing", id_="c"),
        ]
        totals = aggregates.category_totals(transactions)
        assert [t.key for t in totals] == ["Transport", "Food", "Housing"]

        reversed_totals = aggregates.category_totals(list(reversed(transactions)))
        assert [t.key for t in reversed_totals] == ["Housing", "Food", "Transport"]

    def test_category_totals_by_type(self):
        transactions = [
            _tx("2500", TransactionType.INCOME, "Salary", id_="a"),
            _tx("120", TransactionType.EXPENSE, "Food", id_="b"),
        ]
        totals = aggregates.category_totals(transactions, TransactionType.EXPENSE)
        assert [t.key for t in totals] == ["Food"]

    def test_monthly_totals(self):
        transactions = [
            _tx("100", TransactionType.EXPENSE, day=date(2025, 1, 5), id_="a"),
            _tx("300", TransactionType.EXPENSE, day=date(2025, 2, 5), id_="b"),
            _tx("50", TransactionType.EXPENSE, day=date(2025, 1, 28), id_="c"),
        ]
        totals = aggregates.monthly_totals(transactions)

        assert [(t.key, t.total) for t in totals] == [
            ("2025-02", Decimal("300")),
            ("2025-01", Decimal("150")),
        ]

    @pytest.mark.parametrize("seed", range(10))
    def test_category_totals_add_up(self, seed):
        rng = random.Random(seed)
        transactions = _random_ledger(rng, 60)
        totals = aggregates.category_totals(transactions)

        assert sum((t.total for t in totals), Decimal("0")) == sum(
            (t.amount for t in transactions), Decimal("0")
        )
        assert [t.total for t in totals] == sorted((t.total for t in totals), reverse=True)


class TestMonthlyBreakdown:
    """Tests for the income/expense per month view."""

    def test_breakdown_is_chronological(self):
        transactions = [
            _tx("100", TransactionType.EXPENSE, day=date(2025, 3, 1), id_="a"),
            _tx("2500", TransactionType.INCOME, day=date(2025, 1, 1), id_="b"),
            _tx("40", TransactionType.EXPENSE, day=date(2025, 1, 9), id_="c"),
        ]
        breakdown = aggregates.monthly_breakdown(transactions)

        assert [m.month for m in breakdown] == ["2025-01", "2025-03"]
        assert breakdown[0].income == Decimal("2500")
        assert breakdown[0].expense == Decimal("40")
        assert breakdown[1].income == Decimal("0")

    def test_month_bucket(self):
        assert aggregates.month_bucket(date(2025, 7, 31)) == "2025-07"


class TestFilterByDateRange:
    """Tests for date range filtering."""

    def test_inclusive_bounds(self):
        transactions = [
            _tx("1", TransactionType.EXPENSE, day=date(2025, 1, d), id_=str(d))
            for d in (1, 10, 20, 31)
        ]
        result = aggregates.filter_by_date_range(
            transactions, start=date(2025, 1, 10), end=date(2025, 1, 20)
        )
        assert [t.date.day for t in result] == [10, 20]

    def test_open_bounds(self):
        transactions = [
            _tx("1", TransactionType.EXPENSE, day=date(2025, 1, d), id_=str(d))
            for d in (1, 31)
        ]
        assert len(aggregates.filter_by_date_range(transactions)) == 2
        assert len(aggregates.filter_by_date_range(transactions, start=date(2025, 1, 2))) == 1
