"""
Teller - Source Package

A simulated automated teller for a single account holder: balance
inquiry, deposit, withdrawal, PIN change and conversion into USD/EUR
holdings, with an append-only ledger persisted after every action.

DESIGN PRINCIPLES:
1. The Account is the only place business rules live
2. Failures are values, not exceptions
3. Every action is recorded; the ledger is never rewritten
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Teller Team"
