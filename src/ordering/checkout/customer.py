"""Customer and shipping snapshots taken at checkout.

Profiles come from the identity service as plain dicts, e.g.::

    {"first_name": "Asha", "last_name": "Rao", "phone_number": "9876543210",
     "school_name": "...", "class_standard": "5",
     "address": {"address": "...", "city": "Pune", "postal_code": "411001"}}
"""

import structlog

from ordering.config import settings
from ordering.order.order import CustomerSnapshot, ShippingAddress

logger = structlog.get_logger(__name__)

DEFAULT_CUSTOMER_NAME = "Customer"


def display_name(profile) -> str:
    profile = profile or {}
    if profile.get("name"):
        return profile["name"]

    first, last = profile.get("first_name"), profile.get("last_name")
    if first and last:
        return f"{first} {last}".strip()
    return first or profile.get("user_name") or DEFAULT_CUSTOMER_NAME


def customer_snapshot(profile) -> CustomerSnapshot:
    profile = profile or {}
    return CustomerSnapshot(
        name=display_name(profile),
        email=profile.get("email"),
        phone_number=profile.get("phone_number"),
        school_name=profile.get("school_name"),
        class_standard=profile.get("class_standard"),
    )


def resolve_shipping_address(profile, override=None, order_reference=None) -> ShippingAddress | None:
    """Pick the address an order ships to.

    An explicit override wins, with name, phone and country filled in from
    the profile when missing. Otherwise the profile's saved address is used
    if it has at least an address line or a city. With neither, the order
    has no shipping address.
    """
    profile = profile or {}
    name = display_name(profile)
    phone = profile.get("phone_number")
    country = settings().default_country

    if override:
        return ShippingAddress(
            name=override.get("name") or name,
            phone=override.get("phone") or phone,
            address=override.get("address"),
            city=override.get("city"),
            state=override.get("state"),
            postal_code=override.get("postal_code"),
            country=override.get("country") or country,
        )

    saved = profile.get("address") or {}
    if saved.get("address") or saved.get("city"):
        return ShippingAddress(
            name=name,
            phone=phone,
            address=saved.get("address"),
            city=saved.get("city"),
            state=saved.get("state"),
            postal_code=saved.get("postal_code"),
            country=saved.get("country") or country,
        )

    logger.warning("No shipping address available", order_reference=order_reference)
    return None
