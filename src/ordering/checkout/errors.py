"""Checkout error taxonomy.

Every error carries a machine-readable ``code`` and a ``messages`` dict in
the same ``{field: [message]}`` shape as Protean's ``ValidationError``, so an
API layer can render both the same way.
"""

BLOCKING_STOCK_MESSAGE = "This grade cannot be ordered at the moment due to insufficient stock for required items."


class CheckoutError(Exception):
    code = "CHECKOUT_FAILED"
    field = "checkout"

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    @property
    def messages(self):
        return {self.field: [self.message]}


class CartEmptyError(CheckoutError):
    """Checkout was attempted on a cart with no lines."""

    code = "CART_EMPTY"
    field = "cart"

    def __init__(self, customer_id):
        super().__init__("Cart is empty")
        self.customer_id = customer_id


class InsufficientStockError(CheckoutError):
    """One or more cart lines cannot be fulfilled from current stock.

    ``blocking`` is set when a mandatory line is short: the whole order is
    rejected and ``categories`` is empty. Otherwise ``categories`` lists the
    optional category tags the customer has to uncheck, each once.
    """

    code = "INSUFFICIENT_STOCK"
    field = "stock"

    def __init__(self, message, blocking, categories=(), shortfalls=()):
        super().__init__(message)
        self.blocking = blocking
        self.categories = list(categories)
        self.shortfalls = list(shortfalls)


class TransientCheckoutError(CheckoutError):
    """The commit kept losing races and ran out of attempts. Safe to retry."""

    code = "CHECKOUT_RETRY"

    def __init__(self, attempts):
        super().__init__(f"Checkout could not be completed after {attempts} attempts, please try again")
        self.attempts = attempts


class TransactionConflict(Exception):
    """A record read by a store transaction changed before it committed."""
