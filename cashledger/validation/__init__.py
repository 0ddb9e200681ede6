"""Transaction validation package."""

from cashledger.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
