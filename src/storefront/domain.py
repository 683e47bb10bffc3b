"""The storefront bounded context: product ledger, shopping carts and orders.

Carts are resolved per owner (authenticated user or guest session), mutated
under live stock constraints, merged at login and converted into orders in a
single unit of work that also decrements inventory.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")
