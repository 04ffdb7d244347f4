"""Store transactions with snapshot reads, staged writes, atomic commit and bounded retry.

Every write in the Ordering context goes through a ``StoreTransaction``:

1. Reads go straight to the repositories and remember the ``revision`` of
   each record they saw (or that the record was absent).
2. Writes are staged: whole aggregates through ``add`` and stock movements
   through ``withdraw_stock``, which records a relative decrement rather
   than an absolute stock level.
3. ``commit`` takes the process-wide commit lock, re-reads the read set and
   raises ``TransactionConflict`` if anything moved. Otherwise it applies the
   decrements to the freshly read products, bumps revisions and persists
   everything inside one ``UnitOfWork``.

``run_in_transaction`` re-runs the caller's work from scratch on conflict,
up to the configured attempt budget. The commit lock is only held while
validating and writing, never while the caller's work runs.
"""

import threading

import structlog
from protean import UnitOfWork
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.catalogue.product import Product
from ordering.checkout.errors import TransactionConflict, TransientCheckoutError
from ordering.config import settings

logger = structlog.get_logger(__name__)

_COMMIT_LOCK = threading.Lock()


class StoreTransaction:
    def __init__(self):
        self._reads = {}
        self._staged = {}
        self._withdrawals = {}
        self.committed = False

    # -------------------------------------------------------------------
    # Snapshot reads
    # -------------------------------------------------------------------
    def get(self, aggregate_cls, identifier):
        """Read a record, remembering the revision seen. Raises ``ObjectNotFoundError``."""
        key = (aggregate_cls, str(identifier))
        try:
            record = current_domain.repository_for(aggregate_cls).get(str(identifier))
        except ObjectNotFoundError:
            self._reads.setdefault(key, None)
            raise

        self._reads.setdefault(key, record.revision or 0)
        return record

    def find(self, aggregate_cls, identifier):
        """Like ``get``, but returns ``None`` for a missing record."""
        try:
            return self.get(aggregate_cls, identifier)
        except ObjectNotFoundError:
            return None

    # -------------------------------------------------------------------
    # Staged writes
    # -------------------------------------------------------------------
    def add(self, aggregate):
        self._staged[(type(aggregate), str(aggregate.id))] = aggregate

    def withdraw_stock(self, product_id, units, order_number):
        """Stage a relative decrement of ``units`` base units."""
        staged_units, _ = self._withdrawals.get(str(product_id), (0, order_number))
        self._withdrawals[str(product_id)] = (staged_units + units, order_number)

    @property
    def has_writes(self) -> bool:
        return bool(self._staged or self._withdrawals)

    # -------------------------------------------------------------------
    # Commit
    # -------------------------------------------------------------------
    def commit(self):
        if self.committed:
            raise RuntimeError("Transaction already committed")

        with _COMMIT_LOCK:
            self._verify_reads()
            if not self.has_writes:
                self.committed = True
                return

            products = self._apply_withdrawals()
            with UnitOfWork():
                for aggregate in [*products, *self._staged.values()]:
                    aggregate.revision = (aggregate.revision or 0) + 1
                    current_domain.repository_for(type(aggregate)).add(aggregate)

        self.committed = True

    def _verify_reads(self):
        for (aggregate_cls, identifier), seen in self._reads.items():
            try:
                current = current_domain.repository_for(aggregate_cls).get(identifier).revision or 0
            except ObjectNotFoundError:
                current = None

            if current != seen:
                raise TransactionConflict(
                    f"{aggregate_cls.__name__}({identifier}) changed: read revision {seen}, now {current}"
                )

    def _apply_withdrawals(self):
        repo = current_domain.repository_for(Product)
        products = []
        for product_id, (units, order_number) in self._withdrawals.items():
            try:
                product = repo.get(product_id)
                product.withdraw_stock(units, order_number)
            except (ObjectNotFoundError, ValidationError) as exc:
                raise TransactionConflict(f"Cannot withdraw {units} units of {product_id}: {exc}") from exc
            products.append(product)
        return products


def run_in_transaction(work, max_attempts=None):
    """Run ``work(txn)`` and commit it, retrying the whole unit on conflict.

    Exceptions raised by ``work`` itself abort the attempt and propagate;
    nothing staged by that attempt is written.
    """
    attempts = max_attempts or settings().max_attempts

    for attempt in range(1, attempts + 1):
        txn = StoreTransaction()
        try:
            result = work(txn)
            txn.commit()
        except (TransactionConflict, ExpectedVersionError) as exc:
            logger.info(
                "Store transaction conflicted",
                attempt=attempt,
                max_attempts=attempts,
                reason=str(exc),
            )
            continue
        return result

    logger.warning("Store transaction abandoned after repeated conflicts", attempts=attempts)
    raise TransientCheckoutError(attempts)
