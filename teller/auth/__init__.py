"""Card holder authentication package."""

from teller.auth.gate import (
    AuthenticationFailure,
    AuthenticationGate,
    AuthenticationResult,
    clean_numeric_input,
    validate_card_details,
    verify_pin,
)

__all__ = [
    "AuthenticationFailure",
    "AuthenticationGate",
    "AuthenticationResult",
    "clean_numeric_input",
    "validate_card_details",
    "verify_pin",
]
