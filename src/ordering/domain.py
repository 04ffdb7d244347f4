"""Ordering bounded context: shopping cart and checkout.

Holds the catalogue records the checkout reads, the per-customer shopping
cart, and the transactional order committer that turns a cart into a
placed order without ever overselling stock.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

ordering = Domain(name="ordering")
