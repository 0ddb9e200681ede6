"""
Cash Ledger - Source Package

The ledger and entitlement state core of a personal / small-business
cash tracker: transactions, categories, clients, derived summaries and
the free-tier transaction ceiling.

DESIGN PRINCIPLES:
1. Remote confirms → Memory reflects (no optimistic writes)
2. Fail early, fail visibly
3. No silent corrections
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Cash Ledger Team"
