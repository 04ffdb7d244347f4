"""Domain events for catalogue records held by the Ordering context."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Product")
class ProductRegistered:
    """A product was added to the catalogue with its opening stock."""

    __version__ = 1

    product_id = Identifier(required=True)
    title = String(required=True)
    category = String(required=True)
    price = Float(required=True)
    stock_quantity = Integer(required=True)
    units_per_bundle = Integer(required=True)
    registered_at = DateTime(required=True)


@ordering.event(part_of="Product")
class StockWithdrawn:
    """Base units were taken out of stock by a placed order."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_number = String(required=True)
    units = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    withdrawn_at = DateTime(required=True)
