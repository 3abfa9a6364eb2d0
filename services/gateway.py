"""Stripe Checkout adapter.

The booking services only talk to this narrow interface, so tests can hand
them any object with the same three methods.
"""
import logging
import time

import stripe

logger = logging.getLogger(__name__)

# Stripe refuses checkout sessions that expire sooner than this
MIN_SESSION_LIFETIME = 30 * 60


class PaymentGatewayError(Exception):
    pass


class CheckoutSession:
    def __init__(self, id, url):
        self.id = id
        self.url = url


class CheckoutOutcome:
    def __init__(self, session_id, paid, amount_received, metadata):
        self.session_id = session_id
        self.paid = paid
        self.amount_received = amount_received
        self.metadata = metadata


class StripeGateway:
    def __init__(self, api_key, app_url, currency="inr", webhook_secret=None):
        self.api_key = api_key
        self.app_url = (app_url or "").rstrip("/")
        self.currency = currency
        self.webhook_secret = webhook_secret

    def create_checkout(self, amount, name, description, metadata, cancel_path, expires_in=None):
        params = {
            "api_key": self.api_key,
            "payment_method_types": ["card"],
            "line_items": [{
                "price_data": {
                    "currency": self.currency,
                    "product_data": {"name": name, "description": description},
                    "unit_amount": amount,
                },
                "quantity": 1,
            }],
            "mode": "payment",
            "success_url": f"{self.app_url}/payments/checkout/result?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self.app_url}{cancel_path}",
            "metadata": {key: str(value) for key, value in metadata.items()},
        }
        if expires_in and expires_in >= MIN_SESSION_LIFETIME:
            params["expires_at"] = int(time.time()) + int(expires_in)

        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout creation failed: {e}")
            raise PaymentGatewayError(str(e)) from e

        return CheckoutSession(session.id, session.url)

    def retrieve_outcome(self, session_id):
        try:
            session = stripe.checkout.Session.retrieve(
                session_id, expand=["payment_intent"], api_key=self.api_key
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe session {session_id} lookup failed: {e}")
            raise PaymentGatewayError(str(e)) from e

        intent = session.payment_intent
        if intent is not None and not isinstance(intent, str):
            paid = intent.status == "succeeded"
            amount_received = intent.amount_received or 0
        else:
            paid = session.payment_status == "paid"
            amount_received = session.amount_total or 0

        metadata = dict(session.metadata) if session.metadata else {}
        return CheckoutOutcome(session.id, paid, amount_received, metadata)

    def parse_webhook(self, payload, signature):
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Rejected Stripe webhook: {e}")
            raise PaymentGatewayError(str(e)) from e
