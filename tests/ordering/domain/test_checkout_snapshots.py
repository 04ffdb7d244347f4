"""Tests for payment proof and customer/shipping snapshots."""

import pytest
from ordering.checkout.customer import customer_snapshot, display_name, resolve_shipping_address
from ordering.checkout.payment import PaymentProof
from protean.exceptions import ValidationError


class TestPaymentProof:
    def test_from_mapping(self):
        proof = PaymentProof.from_mapping({"order_id": "o1", "payment_id": "p1", "signature": "s1"})
        assert proof == PaymentProof("o1", "p1", "s1")

    def test_from_gateway_field_names(self):
        proof = PaymentProof.from_mapping(
            {"payment_order_id": "o1", "payment_id": "p1", "payment_signature": "s1"}
        )
        assert proof == PaymentProof("o1", "p1", "s1")

    def test_missing_fields_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            PaymentProof.from_mapping({"order_id": "o1", "payment_id": "  "}).ensure_present()

        assert set(exc_info.value.messages) == {"payment_id", "signature"}

    def test_complete_proof_passes(self):
        proof = PaymentProof("o1", "p1", "s1")
        assert proof.ensure_present() is proof


class TestDisplayName:
    def test_first_and_last(self):
        assert display_name({"first_name": "Asha", "last_name": "Rao"}) == "Asha Rao"

    def test_first_only(self):
        assert display_name({"first_name": "Asha"}) == "Asha"

    def test_user_name(self):
        assert display_name({"user_name": "asha_r"}) == "asha_r"

    def test_fallback(self):
        assert display_name(None) == "Customer"


class TestCustomerSnapshot:
    def test_copies_profile_fields(self, profile):
        snapshot = customer_snapshot(profile)
        assert snapshot.name == "Asha Rao"
        assert snapshot.email == "asha@example.com"
        assert snapshot.school_name == "Green Valley School"
        assert snapshot.class_standard == "5"

    def test_without_profile(self):
        assert customer_snapshot(None).name == "Customer"


class TestResolveShippingAddress:
    def test_override_wins(self, profile):
        address = resolve_shipping_address(profile, override={"address": "1 Lake View", "city": "Nashik"})

        assert address.city == "Nashik"
        assert address.name == "Asha Rao"
        assert address.phone == "9876543210"
        assert address.country == "India"

    def test_override_keeps_its_own_contact(self, profile):
        address = resolve_shipping_address(
            profile, override={"name": "Ravi Rao", "phone": "9000000000", "city": "Goa", "country": "India"}
        )
        assert address.name == "Ravi Rao"
        assert address.phone == "9000000000"

    def test_saved_address(self, profile):
        address = resolve_shipping_address(profile)
        assert address.address == "12 MG Road"
        assert address.city == "Pune"
        assert address.country == "India"

    def test_saved_address_needs_line_or_city(self, profile):
        profile["address"] = {"postal_code": "411001"}
        assert resolve_shipping_address(profile) is None

    def test_no_address(self):
        assert resolve_shipping_address({"first_name": "Asha"}) is None

    def test_default_country_from_settings(self, profile, monkeypatch):
        from ordering.config import settings

        monkeypatch.setenv("CHECKOUT_DEFAULT_COUNTRY", "Nepal")
        settings.cache_clear()

        assert resolve_shipping_address(profile).country == "Nepal"
