"""
Error types raised by the ledger engine
"""


class LedgerError(ValueError):
    """Base class for all ledger engine errors"""


class InvalidDateInput(LedgerError):
    """A value that should be a calendar date is missing or malformed"""


class InvalidLeaseError(LedgerError):
    """Lease dates or amounts break a lease invariant"""


class InvalidAmountError(LedgerError):
    """A monetary value is not a finite number"""
