"""
Authentication Gate

Matches what the card holder typed against the account's card details
and PIN. Reads the account, never changes it.

Card fields are compared after stripping everything but digits, so
"4111 1111 1111 1111" matches "4111-1111-1111-1111" and "12/27"
matches "1227". The PIN is compared exactly.
"""

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from teller.models.account import Account, CardDetails


_NON_DIGITS = re.compile(r"[^0-9]")


class AuthenticationFailure(str, Enum):
    INVALID_CARD = "invalid_card"
    INVALID_PIN = "invalid_pin"
    LOCKED = "locked"


class AuthenticationResult(BaseModel):
    """Outcome of one sign-in attempt."""
    
    authenticated: bool
    failure: Optional[AuthenticationFailure] = None
    message: str
    attempts_remaining: int


def clean_numeric_input(value: Optional[str]) -> str:
    """Drop every character that is not a digit."""
    return _NON_DIGITS.sub("", value or "")


def validate_card_details(
    card_number: str,
    cvc: str,
    expiration_date: str,
    card: CardDetails,
) -> bool:
    """True when all three entered card fields match the stored card."""
    return (
        clean_numeric_input(card_number) == clean_numeric_input(card.card_number)
        and clean_numeric_input(expiration_date) == clean_numeric_input(card.expiration_date)
        and clean_numeric_input(cvc) == clean_numeric_input(card.cvc)
    )


def verify_pin(entered_pin: Optional[str], account: Account) -> bool:
    return entered_pin is not None and entered_pin == account.pin_code


class AuthenticationGate:
    """
    Card + PIN check with a failed-attempt limit.
    
    Once `max_attempts` attempts have failed the gate stays locked for
    the rest of the process; there is no unlock path.
    """
    
    def __init__(self, max_attempts: int = 3):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._max_attempts = max_attempts
        self._failed_attempts = 0
    
    @property
    def failed_attempts(self) -> int:
        return self._failed_attempts
    
    @property
    def is_locked(self) -> bool:
        return self._failed_attempts >= self._max_attempts
    
    @property
    def attempts_remaining(self) -> int:
        return max(self._max_attempts - self._failed_attempts, 0)
    
    def _fail(self, failure: AuthenticationFailure, message: str) -> AuthenticationResult:
        self._failed_attempts += 1
        if self.is_locked:
            return AuthenticationResult(
                authenticated=False,
                failure=AuthenticationFailure.LOCKED,
                message="Too many failed attempts. The card has been retained.",
                attempts_remaining=0,
            )
        return AuthenticationResult(
            authenticated=False,
            failure=failure,
            message=message,
            attempts_remaining=self.attempts_remaining,
        )
    
    def authenticate(
        self,
        account: Account,
        card_number: str,
        cvc: str,
        expiration_date: str,
        pin: str,
    ) -> AuthenticationResult:
        """Check card details first, then the PIN."""
        if self.is_locked:
            return AuthenticationResult(
                authenticated=False,
                failure=AuthenticationFailure.LOCKED,
                message="Too many failed attempts. The card has been retained.",
                attempts_remaining=0,
            )
        
        if not validate_card_details(card_number, cvc, expiration_date, account.card_details):
            return self._fail(AuthenticationFailure.INVALID_CARD, "Invalid card details.")
        
        if not verify_pin(pin, account):
            return self._fail(AuthenticationFailure.INVALID_PIN, "Invalid PIN.")
        
        self._failed_attempts = 0
        return AuthenticationResult(
            authenticated=True,
            message=f"Welcome, {account.full_name}.",
            attempts_remaining=self._max_attempts,
        )
