"""Shared BDD fixtures and step definitions for checkout."""

import pytest
from ordering.cart.lines import set_line
from ordering.catalogue.product import Product
from ordering.checkout.transaction import run_in_transaction
from ordering.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def customer_id():
    return "cust-001"


@pytest.fixture()
def outcome():
    """Container for the result of the step under test."""
    return {"result": None, "exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse(
        'a product "{product_id}" priced {price:g} in category "{category}" '
        "with {stock:d} units in bundles of {units:d}"
    )
)
def product_in_catalogue(register, product_id, price, category, stock, units):
    register(product_id, price=price, stock_quantity=stock, units_per_bundle=units, category=category)


@given(parsers.cfparse('the customer has {count:d} bundles of "{product_id}" in the cart'))
@given(parsers.cfparse('the customer has {count:d} bundle of "{product_id}" in the cart'))
def line_in_cart(customer_id, product_id, count):
    set_line(customer_id, product_id, count)


@given(parsers.cfparse('"{product_id}" sells out'))
def sells_out(product_id):
    def work(txn):
        product = txn.get(Product, product_id)
        txn.withdraw_stock(product_id, product.stock_quantity, "ORD-20260101-SOLD")

    run_in_transaction(work)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{product_id}" has {units:d} units left'))
def units_left(product_id, units):
    assert current_domain.repository_for(Product).get(product_id).stock_quantity == units


@then("no order is placed")
def no_order():
    assert current_domain.repository_for(Order)._dao.query.all().items == []
