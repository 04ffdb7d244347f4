"""Shopping Cart aggregate: one active cart per customer.

The cart's identity is the customer id, so getting the cart for a customer
is a plain lookup. Each line keeps a snapshot of what the catalogue said when
the line was last set (selling price, bundle size, category and display
fields). Checkout totals are computed from the snapshot, and the category
snapshot decides whether a shortage blocks the order or only excludes a
bundle.

``total_amount`` is cached on the cart but always recomputed from the lines
after a mutation, never adjusted incrementally.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.cart.events import CartCleared, CartLineBackfilled, CartLineRemoved, CartLineSet
from ordering.domain import ordering


@ordering.entity(part_of="ShoppingCart")
class CartLine:
    product_id = Identifier(required=True)
    bundle_count = Integer(required=True, min_value=1)
    # Snapshot fields; absent on lines written before snapshots existed
    price = Float(min_value=0.0)
    units_per_bundle = Integer(min_value=1)
    category = String(max_length=50)
    title = String(max_length=200)
    author = String(max_length=100)
    cover_image_url = String(max_length=500)
    added_at = DateTime()

    @property
    def subtotal(self) -> float:
        return (self.price or 0.0) * self.bundle_count

    @property
    def needs_backfill(self) -> bool:
        return self.price is None or self.units_per_bundle is None or not self.category


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True)
    lines = HasMany(CartLine)
    total_amount = Float(default=0.0)
    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(
            id=str(customer_id),
            customer_id=str(customer_id),
            total_amount=0.0,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def line_for(self, product_id):
        return next((line for line in self.lines if str(line.product_id) == str(product_id)), None)

    def lines_needing_backfill(self):
        return [line for line in self.lines if line.needs_backfill]

    @property
    def bundle_count_total(self) -> int:
        return sum(line.bundle_count for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def set_line(self, product, bundle_count):
        """Set the bundle count for a product, snapshotting its catalogue record.

        A bundle count of zero removes the line.
        """
        if bundle_count < 0:
            raise ValidationError({"bundle_count": ["Bundle count must be 0 or greater"]})

        if bundle_count == 0:
            self.remove_line(product.id)
            return

        existing = self.line_for(product.id)
        previous = existing.bundle_count if existing else 0
        snapshot = dict(
            price=product.selling_price,
            units_per_bundle=product.units_per_bundle,
            category=product.category,
            title=product.title,
            author=product.author,
            cover_image_url=product.cover_image_url,
        )

        now = datetime.now(UTC)
        if existing:
            existing.bundle_count = bundle_count
            for field_name, value in snapshot.items():
                setattr(existing, field_name, value)
        else:
            self.add_lines(CartLine(product_id=str(product.id), bundle_count=bundle_count, added_at=now, **snapshot))

        self._recalculate_total()
        self.updated_at = now

        self.raise_(
            CartLineSet(
                cart_id=str(self.id),
                product_id=str(product.id),
                previous_bundle_count=previous,
                bundle_count=bundle_count,
                price=snapshot["price"],
                total_amount=self.total_amount,
            )
        )

    def remove_line(self, product_id):
        """Remove a product's line. Removing a product that is not in the cart is a no-op."""
        line = self.line_for(product_id)
        if line is None:
            return

        self.remove_lines(line)
        self._recalculate_total()
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartLineRemoved(
                cart_id=str(self.id),
                product_id=str(product_id),
                total_amount=self.total_amount,
            )
        )

    def clear(self):
        cleared = len(self.lines)
        for line in list(self.lines):
            self.remove_lines(line)

        self._recalculate_total()
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), lines_cleared=cleared))

    def backfill_line(self, line, product):
        """Fill in missing snapshot fields on a legacy line; present values are kept."""
        if line.price is None:
            line.price = product.selling_price
        if line.units_per_bundle is None:
            line.units_per_bundle = product.units_per_bundle
        if not line.category:
            line.category = product.category
        if not line.title:
            line.title = product.title
        if not line.author:
            line.author = product.author

        self._recalculate_total()
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartLineBackfilled(
                cart_id=str(self.id),
                product_id=str(line.product_id),
                total_amount=self.total_amount,
            )
        )

    def _recalculate_total(self):
        self.total_amount = round(sum(line.subtotal for line in self.lines), 2)
