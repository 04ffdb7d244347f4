"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A paid cart was committed as an order; stock has been withdrawn and the cart emptied."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of line dicts
    subtotal = Float(required=True)
    delivery_charge = Float(required=True)
    total = Float(required=True)
    payment_order_id = String(required=True)
    payment_id = String(required=True)
    placed_at = DateTime(required=True)
