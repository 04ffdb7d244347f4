"""Catalogue lookups used outside the store transaction."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.catalogue.product import Product


def find_product(product_id):
    """Return the current product record, or ``None`` when it no longer exists."""
    try:
        return current_domain.repository_for(Product).get(str(product_id))
    except ObjectNotFoundError:
        return None
