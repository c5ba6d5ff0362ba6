"""Request validation package."""

from budgetframes.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
