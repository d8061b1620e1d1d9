"""Validation package."""

from pocketbook.validation.decoding import (
    DecodeResult,
    decode_categories,
    decode_expenses,
    decode_settings,
)
from pocketbook.validation.validator import ExpenseValidator, validate_category_input

__all__ = [
    "DecodeResult",
    "ExpenseValidator",
    "decode_categories",
    "decode_expenses",
    "decode_settings",
    "validate_category_input",
]
