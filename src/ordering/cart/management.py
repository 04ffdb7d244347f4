"""Cart management: get-or-create with lazy repair, cart count, clearing.

Reading a cart is split into two steps. The primary read gets (or creates)
the customer's cart. A separate repair step then backfills lines written
before snapshots existed; it runs in its own store transaction, and if it
fails for any checkout or persistence reason the failure is logged and the
cart from the primary read is returned untouched.
"""

import structlog
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.catalogue.product import Product
from ordering.checkout.errors import CheckoutError
from ordering.checkout.transaction import run_in_transaction

logger = structlog.get_logger(__name__)


def get_or_create_cart(customer_id) -> ShoppingCart:
    """Primary read: the customer's cart, created empty on first access."""
    if not customer_id:
        raise ValidationError({"customer_id": ["Customer ID is required"]})

    try:
        return current_domain.repository_for(ShoppingCart).get(str(customer_id))
    except ObjectNotFoundError:
        pass

    def create(txn):
        cart = txn.find(ShoppingCart, customer_id)
        if cart is None:
            cart = ShoppingCart.create(customer_id)
            txn.add(cart)
            logger.info("Cart created", customer_id=str(customer_id))
        return cart

    return run_in_transaction(create)


def backfill_cart(cart) -> ShoppingCart:
    """Repair step: fill missing snapshot fields from current product records."""
    if not cart.lines_needing_backfill():
        return cart

    def repair(txn):
        fresh = txn.get(ShoppingCart, cart.id)
        repaired = 0
        for line in fresh.lines_needing_backfill():
            product = txn.find(Product, line.product_id)
            if product is None:
                logger.warning(
                    "Cannot backfill cart line, product no longer exists",
                    cart_id=str(fresh.id),
                    product_id=str(line.product_id),
                )
                continue
            fresh.backfill_line(line, product)
            repaired += 1

        if repaired:
            txn.add(fresh)
        return fresh

    try:
        return run_in_transaction(repair)
    except (CheckoutError, ValidationError, ObjectNotFoundError, ExpectedVersionError) as exc:
        logger.warning(
            "Cart backfill failed, serving cart as read",
            cart_id=str(cart.id),
            error=str(exc),
        )
        return cart


def fetch_cart(customer_id) -> ShoppingCart:
    cart = get_or_create_cart(customer_id)
    return backfill_cart(cart)


def cart_count(customer_id) -> int:
    """Number of bundles in the customer's cart."""
    return fetch_cart(customer_id).bundle_count_total


def clear_cart(customer_id) -> ShoppingCart:
    """Remove every line from a customer's cart."""
    get_or_create_cart(customer_id)

    def clear(txn):
        cart = txn.get(ShoppingCart, customer_id)
        if not cart.is_empty:
            cart.clear()
            txn.add(cart)
        return cart

    cart = run_in_transaction(clear)
    logger.info("Cart cleared", customer_id=str(customer_id))
    return cart
