# Overview: Error taxonomy for the invoice and balance ledgers.

"""
Ledger errors.

Every error raised by the invoice, stock and balance services derives from
LedgerError so routes can translate them into a JSON body with a stable
status code. ``details`` carries structured context (offending line, current
balance, ...) for the client.
"""


class LedgerError(Exception):
    """Base class for ledger operation errors."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": str(self), "details": self.details}


class EmptyCartError(LedgerError):
    """Raised when an invoice is built from zero lines."""


class InvalidLineError(LedgerError):
    """Raised when a cart line has a non-positive or non-integer quantity."""


class InvoiceValidationError(LedgerError):
    """Raised for malformed invoice headers or unknown references."""


class MissingPartyError(LedgerError):
    """Raised when a credit invoice has no customer/supplier to carry the balance."""


class InvalidPaymentError(LedgerError):
    """Raised when a debt payment is <= 0 or exceeds the current balance."""


class InsufficientStockError(LedgerError):
    """Raised when a sale would drive stock negative and that is disallowed."""
    status_code = 409


class PersistenceError(LedgerError):
    """Raised when the underlying store fails during a ledger operation."""
    status_code = 500
