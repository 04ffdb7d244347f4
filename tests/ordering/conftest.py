import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    import structlog
    from ordering.domain import ordering
    from ordering.utils.db import drop_db, setup_db

    # Importing the domain configures logging; drop structlog's logger cache so tests can capture output
    structlog.reset_defaults()

    bed = DomainFixture(ordering)
    bed.setup()
    setup_db(ordering)
    yield bed
    drop_db(ordering)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    from ordering.config import settings

    settings.cache_clear()
    with ordering_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()
    settings.cache_clear()


@pytest.fixture()
def register():
    """Register a product through the catalogue and return it."""
    from ordering.catalogue.registration import register_product

    def _register(product_id, price=100.0, stock_quantity=10, units_per_bundle=1, category="TEXTBOOK", **kwargs):
        return register_product(
            title=kwargs.pop("title", f"Title {product_id}"),
            price=price,
            stock_quantity=stock_quantity,
            units_per_bundle=units_per_bundle,
            category=category,
            product_id=product_id,
            **kwargs,
        )

    return _register


@pytest.fixture()
def payment():
    from ordering.checkout.payment import PaymentProof

    return PaymentProof(order_id="order_pg_001", payment_id="pay_pg_001", signature="sig-001")


@pytest.fixture()
def profile():
    return {
        "first_name": "Asha",
        "last_name": "Rao",
        "email": "asha@example.com",
        "phone_number": "9876543210",
        "school_name": "Green Valley School",
        "class_standard": "5",
        "address": {"address": "12 MG Road", "city": "Pune", "state": "MH", "postal_code": "411001"},
    }
