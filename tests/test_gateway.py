from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from services.gateway import PaymentGatewayError, StripeGateway


@pytest.fixture
def gateway():
    return StripeGateway("sk_test_123", "https://smartpark.test/", currency="inr", webhook_secret="whsec_1")


class TestCreateCheckout:
    def test_builds_single_line_item(self, gateway):
        with patch("stripe.checkout.Session.create",
                   return_value=SimpleNamespace(id="cs_1", url="https://checkout/cs_1")) as create:
            session = gateway.create_checkout(
                amount=9000, name="Parking at Station Road", description="Nov 02",
                metadata={"bookingid": 7}, cancel_path="/bookings", expires_in=3600,
            )

        assert session.id == "cs_1"
        assert session.url == "https://checkout/cs_1"

        params = create.call_args.kwargs
        assert params["api_key"] == "sk_test_123"
        assert params["mode"] == "payment"
        item = params["line_items"][0]
        assert item["price_data"]["unit_amount"] == 9000
        assert item["price_data"]["currency"] == "inr"
        assert params["metadata"] == {"bookingid": "7"}
        assert params["success_url"] == \
            "https://smartpark.test/payments/checkout/result?session_id={CHECKOUT_SESSION_ID}"
        assert params["cancel_url"] == "https://smartpark.test/bookings"
        assert "expires_at" in params

    def test_short_lifetimes_are_left_to_stripe(self, gateway):
        with patch("stripe.checkout.Session.create",
                   return_value=SimpleNamespace(id="cs_1", url="u")) as create:
            gateway.create_checkout(100, "n", "d", {}, "/bookings", expires_in=600)

        assert "expires_at" not in create.call_args.kwargs

    def test_stripe_errors_are_wrapped(self, gateway):
        with patch("stripe.checkout.Session.create", side_effect=stripe.StripeError("declined")):
            with pytest.raises(PaymentGatewayError):
                gateway.create_checkout(100, "n", "d", {}, "/bookings")


class TestRetrieveOutcome:
    def test_uses_payment_intent(self, gateway):
        session = SimpleNamespace(
            id="cs_1",
            payment_intent=SimpleNamespace(status="succeeded", amount_received=5400),
            payment_status="paid",
            amount_total=6000,
            metadata={"bookingid": "7"},
        )
        with patch("stripe.checkout.Session.retrieve", return_value=session) as retrieve:
            outcome = gateway.retrieve_outcome("cs_1")

        assert retrieve.call_args.kwargs["expand"] == ["payment_intent"]
        assert outcome.paid is True
        assert outcome.amount_received == 5400
        assert outcome.metadata == {"bookingid": "7"}

    def test_unpaid_intent(self, gateway):
        session = SimpleNamespace(
            id="cs_1",
            payment_intent=SimpleNamespace(status="requires_payment_method", amount_received=0),
            payment_status="unpaid",
            amount_total=6000,
            metadata=None,
        )
        with patch("stripe.checkout.Session.retrieve", return_value=session):
            outcome = gateway.retrieve_outcome("cs_1")

        assert outcome.paid is False
        assert outcome.metadata == {}

    def test_falls_back_to_session_status(self, gateway):
        session = SimpleNamespace(id="cs_1", payment_intent=None, payment_status="paid",
                                  amount_total=6000, metadata={})
        with patch("stripe.checkout.Session.retrieve", return_value=session):
            outcome = gateway.retrieve_outcome("cs_1")

        assert outcome.paid is True
        assert outcome.amount_received == 6000

    def test_lookup_failure(self, gateway):
        with patch("stripe.checkout.Session.retrieve", side_effect=stripe.StripeError("no such session")):
            with pytest.raises(PaymentGatewayError):
                gateway.retrieve_outcome("cs_missing")


def test_webhook_signature_failure(gateway):
    with pytest.raises(PaymentGatewayError):
        gateway.parse_webhook(b"{}", "t=1,v1=forged")
