"""Order aggregate: the immutable record of a committed checkout.

An order is created exactly once per successful commit, from a snapshot of
the cart lines at that moment. Later catalogue price changes never reach a
placed order. Payment is verified before the commit runs, so orders start
out ``paid`` / ``confirmed``; delivery status and tracking are filled in
later by fulfillment.

Pricing has no tax line: ``total`` is ``subtotal + delivery_charge``.
"""

import json
import secrets
import string
from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from ordering.domain import ordering
from ordering.order.events import OrderPlaced

_ORDER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


class PaymentStatus(Enum):
    PAID = "paid"


class OrderStatus(Enum):
    CONFIRMED = "confirmed"


class DeliveryStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


def generate_order_number(now=None) -> str:
    """Human-readable order number: ``ORD-<yyyymmdd>-<4 random chars>``.

    Unique by convention only; nothing enforces it.
    """
    now = now or datetime.now(UTC)
    suffix = "".join(secrets.choice(_ORDER_SUFFIX_ALPHABET) for _ in range(4))
    return f"ORD-{now:%Y%m%d}-{suffix}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class CustomerSnapshot:
    """Who placed the order, as known at checkout time."""

    name = String(required=True, max_length=200)
    email = String(max_length=255)
    phone_number = String(max_length=20)
    school_name = String(max_length=255)
    class_standard = String(max_length=50)


@ordering.value_object(part_of="Order")
class ShippingAddress:
    name = String(max_length=200)
    phone = String(max_length=20)
    address = String(max_length=500)
    city = String(max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderLine:
    product_id = Identifier(required=True)
    title = String(max_length=200)
    author = String(max_length=100)
    cover_image_url = String(max_length=500)
    unit_price = Float(required=True, min_value=0.0)
    bundle_count = Integer(required=True, min_value=1)
    units_per_bundle = Integer(default=1, min_value=1)
    subtotal = Float(required=True, min_value=0.0)
    category = String(max_length=50)

    def to_dict(self):
        return {
            "product_id": str(self.product_id),
            "title": self.title,
            "author": self.author,
            "unit_price": self.unit_price,
            "bundle_count": self.bundle_count,
            "units_per_bundle": self.units_per_bundle,
            "subtotal": self.subtotal,
            "category": self.category,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=30)
    customer_id = Identifier(required=True)
    customer = ValueObject(CustomerSnapshot)
    shipping_address = ValueObject(ShippingAddress)
    items = HasMany(OrderLine)
    subtotal = Float(default=0.0)
    delivery_charge = Float(default=0.0)
    total = Float(default=0.0)
    payment_order_id = String(max_length=255)
    payment_id = String(max_length=255)
    payment_signature = String(max_length=512)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PAID.value)
    order_status = String(choices=OrderStatus, default=OrderStatus.CONFIRMED.value)
    delivery_status = String(choices=DeliveryStatus, default=DeliveryStatus.PENDING.value)
    tracking_number = String(max_length=255)
    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def place(cls, customer_id, cart_lines, customer, payment, delivery_charge, shipping_address=None):
        """Build the order from a snapshot of the cart's lines.

        Args:
            customer_id: Owner of the cart.
            cart_lines: Cart lines carrying their price and category snapshots.
            customer: ``CustomerSnapshot`` for the buyer.
            payment: Verified ``PaymentProof``.
            delivery_charge: Flat charge added on top of the subtotal.
            shipping_address: Resolved ``ShippingAddress`` or ``None``.
        """
        now = datetime.now(UTC)
        order = cls(
            order_number=generate_order_number(now),
            customer_id=str(customer_id),
            customer=customer,
            shipping_address=shipping_address,
            delivery_charge=delivery_charge,
            payment_order_id=payment.order_id,
            payment_id=payment.payment_id,
            payment_signature=payment.signature,
            created_at=now,
            updated_at=now,
        )

        for line in cart_lines:
            price = line.price or 0.0
            order.add_items(
                OrderLine(
                    product_id=str(line.product_id),
                    title=line.title,
                    author=line.author,
                    cover_image_url=line.cover_image_url,
                    unit_price=price,
                    bundle_count=line.bundle_count,
                    units_per_bundle=line.units_per_bundle or 1,
                    subtotal=round(price * line.bundle_count, 2),
                    category=line.category,
                )
            )

        order.subtotal = round(sum(item.subtotal for item in order.items), 2)
        order.total = round(order.subtotal + delivery_charge, 2)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=str(customer_id),
                items=json.dumps([item.to_dict() for item in order.items]),
                subtotal=order.subtotal,
                delivery_charge=order.delivery_charge,
                total=order.total,
                payment_order_id=payment.order_id,
                payment_id=payment.payment_id,
                placed_at=now,
            )
        )
        return order

    @property
    def total_units(self) -> int:
        """Base units this order took out of stock."""
        return sum(item.bundle_count * item.units_per_bundle for item in self.items)
