"""
Input Validation

Caller-side checks that run BEFORE any account operation:
- amounts must parse as a finite decimal greater than zero
- a conversion amount must not exceed the home balance
- the currency choice must be one the account can hold

IMPORTANT: Validation NEVER silently fixes input. "12,50" is rejected,
not reinterpreted. The account still re-checks funds as a final guard.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel

from teller.models.account import Account, Currency


RawInput = Union[str, Decimal, int, None]


class InputFailure(str, Enum):
    """Reasons raw operator input is rejected."""
    INVALID_AMOUNT = "invalid_amount"
    INVALID_CURRENCY = "invalid_currency"
    INSUFFICIENT_FUNDS = "insufficient_funds"


class AmountValidation(BaseModel):
    """Result of validating a raw amount."""
    
    is_valid: bool
    amount: Optional[Decimal] = None
    failure: Optional[InputFailure] = None
    message: str = ""


# Menu numbers used by the conversion prompt
_CURRENCY_CHOICES = {
    "1": Currency.USD,
    "2": Currency.EUR,
}


def parse_amount(raw: RawInput) -> AmountValidation:
    """Parse operator input into a positive Decimal amount."""
    invalid = AmountValidation(
        is_valid=False,
        failure=InputFailure.INVALID_AMOUNT,
        message="Invalid amount. Please enter a positive number.",
    )
    
    if raw is None or isinstance(raw, (bool, float)):
        return invalid
    
    if isinstance(raw, Decimal):
        amount = raw
    else:
        try:
            amount = Decimal(str(raw).strip())
        except InvalidOperation:
            return invalid
    
    if not amount.is_finite() or amount <= 0:
        return invalid
    
    return AmountValidation(is_valid=True, amount=amount)


def parse_currency_choice(raw: Optional[str]) -> Optional[Currency]:
    """
    Accept a menu number ("1" USD, "2" EUR) or a currency code.
    
    Returns None for anything else.
    """
    if raw is None:
        return None
    if isinstance(raw, Currency):
        return raw
    
    value = str(raw).strip().upper()
    if value in _CURRENCY_CHOICES:
        return _CURRENCY_CHOICES[value]
    try:
        return Currency(value)
    except ValueError:
        return None


def validate_conversion_amount(raw: RawInput, account: Account) -> AmountValidation:
    """Positive amount that the home balance covers."""
    result = parse_amount(raw)
    if not result.is_valid:
        return AmountValidation(
            is_valid=False,
            failure=InputFailure.INVALID_AMOUNT,
            message=(
                "Invalid amount. Please enter a positive number and ensure "
                "it does not exceed your current balance."
            ),
        )
    
    if result.amount > account.balance:
        return AmountValidation(
            is_valid=False,
            amount=result.amount,
            failure=InputFailure.INSUFFICIENT_FUNDS,
            message=(
                "Invalid amount. Please enter a positive number and ensure "
                "it does not exceed your current balance."
            ),
        )
    
    return result
