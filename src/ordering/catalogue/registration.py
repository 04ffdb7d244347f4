"""Product registration seeds the catalogue the checkout reads from."""

import structlog
from protean.exceptions import ValidationError

from ordering.catalogue.product import Product
from ordering.checkout.transaction import run_in_transaction

logger = structlog.get_logger(__name__)


def register_product(title, price, **attributes) -> Product:
    """Add a product with its opening stock.

    Written through a store transaction so it composes with concurrent
    checkouts. Accepts the keyword arguments of ``Product.register``.
    """
    product = Product.register(title=title, price=price, **attributes)

    def add(txn):
        if txn.find(Product, product.id) is not None:
            raise ValidationError({"product_id": [f"Product {product.id} already exists"]})
        txn.add(product)
        return product

    run_in_transaction(add)
    logger.info(
        "Product registered",
        product_id=str(product.id),
        category=product.category,
        stock_quantity=product.stock_quantity,
        units_per_bundle=product.units_per_bundle,
    )
    return product
