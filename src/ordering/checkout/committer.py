"""Checkout: advisory validation and the transactional order committer.

``validate_checkout`` gives the customer fast feedback before they pay. It
reads outside any transaction and may be stale by the time payment
completes; that is fine, because ``commit_order`` repeats the same stock
check against fresh reads inside the store transaction, and only that check
decides whether an order is placed.

Inside the transaction the committer re-reads the cart, re-checks stock,
repairs lines that predate price snapshots, stages a relative withdrawal of
``bundle_count x units_per_bundle`` base
units per line, builds the order and empties the cart. The three writes
commit together or not at all; on a conflicting concurrent write the whole
unit is retried from the cart read.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.cart.management import fetch_cart
from ordering.catalogue.lookup import find_product
from ordering.catalogue.product import Product
from ordering.checkout.customer import customer_snapshot, resolve_shipping_address
from ordering.checkout.errors import CartEmptyError
from ordering.checkout.payment import PaymentProof
from ordering.checkout.stock_check import check_stock, demands_for
from ordering.checkout.transaction import run_in_transaction
from ordering.config import settings
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


def validate_checkout(customer_id) -> dict:
    """Advisory stock check for the customer's cart. No side effects on stock."""
    cart = fetch_cart(customer_id)
    if cart.is_empty:
        raise CartEmptyError(customer_id)

    check_stock(demands_for(cart.lines), find_product).raise_for_shortfall()
    return {"valid": True}


def _peek_cart(customer_id):
    try:
        return current_domain.repository_for(ShoppingCart).get(str(customer_id))
    except ObjectNotFoundError:
        return None


def commit_order(customer_id, payment, customer=None, shipping_address=None) -> Order:
    """Turn the customer's cart into an order, withdrawing stock atomically.

    Args:
        customer_id: Owner of the cart.
        payment: ``PaymentProof`` (or a mapping) for an already verified payment.
        customer: Identity profile used for the customer and address snapshots.
        shipping_address: Optional address overriding the profile's saved one.

    Raises:
        ValidationError: A payment identifier is missing.
        CartEmptyError: The cart has no lines, before or inside the transaction.
        InsufficientStockError: Stock cannot cover the cart; nothing is written.
        TransientCheckoutError: Every attempt lost a race; nothing is written.
    """
    if not isinstance(payment, PaymentProof):
        payment = PaymentProof.from_mapping(payment)
    payment.ensure_present()

    cart = _peek_cart(customer_id)
    if cart is None or cart.is_empty:
        raise CartEmptyError(customer_id)

    config = settings()
    snapshot = customer_snapshot(customer)
    address = resolve_shipping_address(customer, override=shipping_address, order_reference=payment.order_id)

    def place(txn):
        cart = txn.find(ShoppingCart, customer_id)
        if cart is None or cart.is_empty:
            raise CartEmptyError(customer_id)

        products = {}

        def find_in_txn(product_id):
            if product_id not in products:
                products[product_id] = txn.find(Product, product_id)
            return products[product_id]

        check_stock(demands_for(cart.lines), find_in_txn).raise_for_shortfall()

        # Lines written before snapshots existed are priced from the current record
        for line in cart.lines_needing_backfill():
            cart.backfill_line(line, find_in_txn(str(line.product_id)))

        order = Order.place(
            customer_id=customer_id,
            cart_lines=cart.lines,
            customer=snapshot,
            payment=payment,
            delivery_charge=config.delivery_charge,
            shipping_address=address,
        )

        for line in cart.lines:
            product = find_in_txn(str(line.product_id))
            txn.withdraw_stock(product.id, line.bundle_count * product.units_per_bundle, order.order_number)

        cart.clear()
        txn.add(order)
        txn.add(cart)
        return order

    order = run_in_transaction(place, max_attempts=config.max_attempts)

    logger.info(
        "Order placed",
        order_number=order.order_number,
        order_id=str(order.id),
        customer_id=str(customer_id),
        item_count=len(order.items),
        total=order.total,
    )
    return order
