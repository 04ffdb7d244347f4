"""Stock validation shared by the advisory pre-check and the in-transaction recheck.

``check_stock`` is deliberately the only implementation: cart bulk-adds and
``validate_checkout`` call it with a plain repository lookup, and the order
committer calls it again with the transaction's snapshot reads. It never
writes anything.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ordering.checkout.errors import BLOCKING_STOCK_MESSAGE, InsufficientStockError
from ordering.checkout.policy import BookCategory, StockPolicy, category_label, classify, normalize_category


@dataclass(frozen=True)
class StockDemand:
    """Bundles requested for one product; ``category`` is the cart line's snapshot tag."""

    product_id: str
    bundle_count: int
    category: str | None = None


@dataclass(frozen=True)
class Shortfall:
    product_id: str
    category: str
    available_bundles: int
    requested_bundles: int

    @property
    def policy(self) -> StockPolicy:
        return classify(self.category)


@dataclass(frozen=True)
class StockCheck:
    shortfalls: tuple[Shortfall, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.shortfalls

    @property
    def blocking(self) -> bool:
        return any(s.policy is StockPolicy.MANDATORY for s in self.shortfalls)

    @property
    def excluded_categories(self) -> list[str]:
        """Optional categories to uncheck, each listed once in first-seen order."""
        if self.blocking:
            return []
        return list(dict.fromkeys(s.category for s in self.shortfalls))

    @property
    def message(self) -> str | None:
        if self.ok:
            return None
        if self.blocking:
            return BLOCKING_STOCK_MESSAGE
        labels = " / ".join(category_label(c) for c in self.excluded_categories)
        return (
            f"Insufficient stock for some items in the {labels} bundle. "
            f"Please uncheck the {labels} bundle to continue."
        )

    def raise_for_shortfall(self):
        if self.ok:
            return
        raise InsufficientStockError(
            self.message,
            blocking=self.blocking,
            categories=self.excluded_categories,
            shortfalls=self.shortfalls,
        )


def demands_for(lines) -> list[StockDemand]:
    """Stock demand of cart lines, carrying each line's category snapshot."""
    return [StockDemand(str(line.product_id), line.bundle_count, line.category) for line in lines]


def check_stock(demands: Iterable[StockDemand], find_product: Callable) -> StockCheck:
    """Compare every demand against current stock and report all shortfalls.

    ``find_product`` returns the current product record or ``None``. A missing
    product is short by definition, with nothing available, and classified
    as ``OTHER``.
    """
    shortfalls = []
    for demand in demands:
        product = find_product(demand.product_id)

        if product is None:
            shortfalls.append(
                Shortfall(
                    product_id=str(demand.product_id),
                    category=BookCategory.OTHER.value,
                    available_bundles=0,
                    requested_bundles=demand.bundle_count,
                )
            )
            continue

        available = product.available_bundles
        if demand.bundle_count > available:
            shortfalls.append(
                Shortfall(
                    product_id=str(demand.product_id),
                    category=normalize_category(demand.category or product.category),
                    available_bundles=available,
                    requested_bundles=demand.bundle_count,
                )
            )

    return StockCheck(shortfalls=tuple(shortfalls))
