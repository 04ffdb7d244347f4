"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Float, Identifier, Integer

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartLineSet:
    """A product line was added to the cart or its bundle count changed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_bundle_count = Integer(default=0)
    bundle_count = Integer(required=True)
    price = Float(required=True)
    total_amount = Float(required=True)


@ordering.event(part_of="ShoppingCart")
class CartLineRemoved:
    """A product line was taken out of the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    total_amount = Float(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCleared:
    """All lines were removed, usually because the cart became an order."""

    __version__ = 1

    cart_id = Identifier(required=True)
    lines_cleared = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartLineBackfilled:
    """A legacy line missing its price or category snapshot was repaired from the catalogue."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    total_amount = Float(required=True)
