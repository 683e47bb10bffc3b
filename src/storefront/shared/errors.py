"""Error taxonomy for cart, checkout and ledger operations.

Every error carries a human-readable message embedding the offending values.
The HTTP layer maps each kind to a status code via ``status_code``.
"""


class StorefrontError(Exception):
    """Base class for failures surfaced to callers."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class InvalidRequest(StorefrontError):
    """The request lacks something the operation needs, such as an owner."""


class NotFound(StorefrontError):
    status_code = 404


class Forbidden(StorefrontError):
    status_code = 403


class InvalidState(StorefrontError):
    """The operation is not allowed given the current state of the cart or order."""


class StockConflict(StorefrontError):
    """A requested or merged quantity exceeds what the ledger holds."""

    status_code = 409


class TransactionFailure(StorefrontError):
    """The persistence layer rejected the unit of work. Not retried here."""

    status_code = 503
