"""Synchronous command dispatch with persistence failures normalized."""

from protean.utils.globals import current_domain
from sqlalchemy.exc import SQLAlchemyError

from storefront.shared.errors import TransactionFailure
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def dispatch(command):
    """Process ``command`` in its own unit of work and return the handler's result.

    A failure raised by the database while the unit of work commits surfaces as
    TransactionFailure; nothing is retried here.
    """
    try:
        return current_domain.process(command, asynchronous=False)
    except SQLAlchemyError as exc:
        logger.error("transaction_failed", command=command.__class__.__name__, error=str(exc))
        raise TransactionFailure(f"Transaction failed: {exc.__class__.__name__}") from exc
