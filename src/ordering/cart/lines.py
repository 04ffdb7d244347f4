"""Cart line writes: single lines, whole kits, and removals.

``set_line`` changes one product's bundle count. ``set_lines`` is the bulk
form used to add a whole grade kit at once: it checks stock for every line
before writing any of them, so either all lines land or none do. That check
is advisory; the binding check happens again when the order is committed.
"""

import json

import structlog
from protean.exceptions import ValidationError

from ordering.cart.cart import ShoppingCart
from ordering.cart.management import get_or_create_cart
from ordering.catalogue.lookup import find_product
from ordering.catalogue.product import Product
from ordering.checkout.stock_check import StockDemand, check_stock
from ordering.checkout.transaction import run_in_transaction

logger = structlog.get_logger(__name__)


def _parse_lines(lines):
    try:
        raw = json.loads(lines) if isinstance(lines, str) else lines
    except ValueError:
        raise ValidationError({"lines": ["Lines must be a JSON list of objects"]}) from None

    if raw is not None and not isinstance(raw, (list, tuple)):
        raise ValidationError({"lines": ["Lines must be a JSON list of objects"]})

    parsed = []
    for entry in raw or []:
        if not isinstance(entry, dict):
            raise ValidationError({"lines": ["Every line must be an object with product_id and bundle_count"]})
        product_id = entry.get("product_id")
        if not product_id:
            raise ValidationError({"lines": ["Every line needs a product_id"]})
        try:
            bundle_count = int(entry.get("bundle_count", 1))
        except (TypeError, ValueError):
            raise ValidationError({"lines": [f"Bundle count for {product_id} must be a whole number"]}) from None
        if bundle_count < 0:
            raise ValidationError({"lines": [f"Bundle count for {product_id} must be 0 or greater"]})
        parsed.append((str(product_id), bundle_count))
    return parsed


def set_line(customer_id, product_id, bundle_count) -> ShoppingCart:
    get_or_create_cart(customer_id)

    def write(txn):
        cart = txn.get(ShoppingCart, customer_id)
        if bundle_count == 0:
            cart.remove_line(product_id)
        else:
            product = txn.find(Product, product_id)
            if product is None:
                raise ValidationError({"product_id": ["Product not found"]})
            cart.set_line(product, bundle_count)
        txn.add(cart)
        return cart

    cart = run_in_transaction(write)
    logger.info(
        "Cart line set",
        customer_id=str(customer_id),
        product_id=str(product_id),
        bundle_count=bundle_count,
        total_amount=cart.total_amount,
    )
    return cart


def set_lines(customer_id, lines, replace=False) -> ShoppingCart:
    """Set many lines at once, after checking stock for all of them.

    With ``replace`` the cart ends up holding exactly ``lines``.
    """
    parsed = _parse_lines(lines)

    check_stock(
        [StockDemand(product_id, bundle_count) for product_id, bundle_count in parsed if bundle_count > 0],
        find_product,
    ).raise_for_shortfall()

    get_or_create_cart(customer_id)

    def write(txn):
        cart = txn.get(ShoppingCart, customer_id)
        if replace:
            cart.clear()

        for product_id, bundle_count in parsed:
            if bundle_count == 0:
                cart.remove_line(product_id)
                continue
            product = txn.find(Product, product_id)
            if product is None:
                raise ValidationError({"product_id": [f"Product {product_id} not found"]})
            cart.set_line(product, bundle_count)

        txn.add(cart)
        return cart

    cart = run_in_transaction(write)
    logger.info(
        "Cart lines set",
        customer_id=str(customer_id),
        line_count=len(parsed),
        replace=replace,
        total_amount=cart.total_amount,
    )
    return cart



def remove_line(customer_id, product_id) -> ShoppingCart:
    return set_line(customer_id, product_id, 0)
