"""Validation package."""

from expense_parser.validation.validator import ExpenseValidator

__all__ = ["ExpenseValidator"]
