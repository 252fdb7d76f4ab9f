"""Failures raised by the ledger core. The shell renders them, the core never does."""


class LedgerError(Exception):
    """Base class for every recoverable ledger failure."""

    message = "Something went wrong"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class StorageError(LedgerError, OSError):
    message = "Unable to read or write the save file"


class InvalidInput(LedgerError, ValueError):
    message = "Invalid input"


class InvalidAmount(InvalidInput):
    message = "Invalid amount! Amount must be a non-negative number"


class InvalidDate(InvalidInput):
    message = "Invalid date! Please use the format YYYY-MM-DD"


class EmptyField(InvalidInput):
    message = "New value cannot be empty"


class EmptyDescription(InvalidInput):
    message = "Description cannot be empty"


class InvalidField(InvalidInput):
    message = "Invalid field! Choose from: amount, description, date, tag"


class InvalidCategory(InvalidInput):
    message = "Invalid category"


class IncorrectParamCount(InvalidInput):
    message = "Incorrect number of parameters"


class InvalidIndex(LedgerError, LookupError):
    message = "Invalid index"


class IndexNotInteger(InvalidIndex):
    message = "Index must be an integer"


class IndexOutOfBounds(InvalidIndex):
    message = "Index is out of bounds"


class MaxTotalExceeded(LedgerError):
    message = "This change would push the list total above the allowed maximum"
