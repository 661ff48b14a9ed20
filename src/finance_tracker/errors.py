class FinanceTrackerError(Exception):
    """Base class for errors raised by the finance tracker."""


class ValidationError(FinanceTrackerError, ValueError):
    """Raised when a transaction is malformed and must not enter the ledger."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        details = "; ".join(f"{field}: {message}" for field, message in errors.items())
        super().__init__(details or "Invalid transaction")


class FetchFailed(FinanceTrackerError):
    """Raised when the remote price source is unreachable or unparsable."""


class PersistenceError(FinanceTrackerError):
    """Raised when the key/value store cannot be read or written."""
