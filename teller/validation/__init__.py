"""Operator input validation package."""

from teller.validation.validator import (
    AmountValidation,
    InputFailure,
    parse_amount,
    parse_currency_choice,
    validate_conversion_amount,
)

__all__ = [
    "AmountValidation",
    "InputFailure",
    "parse_amount",
    "parse_currency_choice",
    "validate_conversion_amount",
]
