"""Product aggregate: the catalogue record the checkout reads.

Stock is counted in base units (single notebooks, single pencils); customers
order bundles. One bundle consumes ``units_per_bundle`` base units, so the
number of bundles that can still be sold is the floor of stock over bundle
size.

Apart from seeding, stock only ever moves through ``withdraw_stock``, which
the order committer stages inside a store transaction. Withdrawals are
relative, so concurrent orders compose instead of overwriting each other.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from ordering.catalogue.events import ProductRegistered, StockWithdrawn
from ordering.domain import ordering

DEFAULT_CATEGORY = "OTHER"


@ordering.aggregate
class Product:
    title = String(required=True, max_length=200)
    author = String(max_length=100)
    isbn = String(max_length=20)
    cover_image_url = String(max_length=500)
    price = Float(required=True, min_value=0.0)
    discount_price = Float(min_value=0.0)
    stock_quantity = Integer(default=0, min_value=0)
    units_per_bundle = Integer(default=1, min_value=1)
    category = String(max_length=50, default=DEFAULT_CATEGORY)
    is_active = Boolean(default=True)
    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def register(
        cls,
        title,
        price,
        stock_quantity=0,
        units_per_bundle=1,
        category=DEFAULT_CATEGORY,
        author=None,
        isbn=None,
        cover_image_url=None,
        discount_price=None,
        product_id=None,
    ):
        now = datetime.now(UTC)
        category = (category or DEFAULT_CATEGORY).strip().upper() or DEFAULT_CATEGORY

        attributes = dict(
            title=title,
            author=author,
            isbn=isbn,
            cover_image_url=cover_image_url,
            price=price,
            discount_price=discount_price,
            stock_quantity=stock_quantity,
            units_per_bundle=units_per_bundle or 1,
            category=category,
            created_at=now,
            updated_at=now,
        )
        if product_id is not None:
            attributes["id"] = product_id

        product = cls(**attributes)
        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                title=product.title,
                category=product.category,
                price=product.price,
                stock_quantity=product.stock_quantity,
                units_per_bundle=product.units_per_bundle,
                registered_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def selling_price(self) -> float:
        """Price charged per bundle: the discount price when one is set."""
        if self.discount_price is not None:
            return self.discount_price
        return self.price or 0.0

    @property
    def available_bundles(self) -> int:
        return (self.stock_quantity or 0) // (self.units_per_bundle or 1)

    # -------------------------------------------------------------------
    # Stock movement
    # -------------------------------------------------------------------
    def withdraw_stock(self, units, order_number):
        """Take ``units`` base units out of stock for a placed order."""
        if units <= 0:
            raise ValidationError({"units": ["Units to withdraw must be positive"]})

        previous = self.stock_quantity or 0
        if units > previous:
            raise ValidationError(
                {"stock_quantity": [f"Insufficient stock: {previous} units on hand, {units} requested"]}
            )

        now = datetime.now(UTC)
        self.stock_quantity = previous - units
        self.updated_at = now

        self.raise_(
            StockWithdrawn(
                product_id=str(self.id),
                order_number=order_number,
                units=units,
                previous_stock=previous,
                new_stock=self.stock_quantity,
                withdrawn_at=now,
            )
        )
