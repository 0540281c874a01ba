"""
Ledger Error Taxonomy
Every error is per-request and recoverable by the caller.
"""


class LedgerError(Exception):
    status_code = 400
    code = "ledger_error"

    def __init__(self, message, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self):
        payload = {"detail": self.message, "error": self.code}
        payload.update(self.extra)
        return payload


class ValidationError(LedgerError):
    """Malformed or out-of-range input."""
    status_code = 422
    code = "validation_error"


class DebtExceededError(LedgerError):
    """Payment larger than the remaining debt of the selected months."""
    code = "debt_exceeded"

    def __init__(self, message, max_amount):
        super().__init__(message)
        self.max_amount = max_amount  # minor units

    def to_dict(self):
        from services.money import to_major

        payload = super().to_dict()
        payload["max_amount"] = float(to_major(self.max_amount))
        return payload


class NotFoundError(LedgerError):
    status_code = 404
    code = "not_found"


class TransferError(LedgerError):
    code = "transfer_error"


class ConcurrencyConflict(LedgerError):
    """Another writer kept winning the race; safe to retry."""
    status_code = 409
    code = "concurrency_conflict"
