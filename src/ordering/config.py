"""Checkout settings, read from the environment.

    CHECKOUT_DELIVERY_CHARGE       flat delivery charge added to every order
    CHECKOUT_MAX_ATTEMPTS          commit attempts before giving up on a conflict
    CHECKOUT_DEFAULT_COUNTRY       country used when an address has none
    CHECKOUT_ORDER_HISTORY_LIMIT   default page size for order history
"""

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_DELIVERY_CHARGE = 300.0
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_COUNTRY = "India"
DEFAULT_ORDER_HISTORY_LIMIT = 50


@dataclass(frozen=True)
class CheckoutSettings:
    delivery_charge: float = DEFAULT_DELIVERY_CHARGE
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    default_country: str = DEFAULT_COUNTRY
    order_history_limit: int = DEFAULT_ORDER_HISTORY_LIMIT

    @classmethod
    def from_env(cls) -> "CheckoutSettings":
        max_attempts = int(os.getenv("CHECKOUT_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS))
        if max_attempts < 1:
            raise ValueError(f"CHECKOUT_MAX_ATTEMPTS must be at least 1, got {max_attempts}")

        return cls(
            delivery_charge=float(os.getenv("CHECKOUT_DELIVERY_CHARGE", DEFAULT_DELIVERY_CHARGE)),
            max_attempts=max_attempts,
            default_country=os.getenv("CHECKOUT_DEFAULT_COUNTRY", DEFAULT_COUNTRY),
            order_history_limit=int(os.getenv("CHECKOUT_ORDER_HISTORY_LIMIT", DEFAULT_ORDER_HISTORY_LIMIT)),
        )


@lru_cache(maxsize=1)
def settings() -> CheckoutSettings:
    """Return the process-wide settings; ``settings.cache_clear()`` re-reads the environment."""
    return CheckoutSettings.from_env()
