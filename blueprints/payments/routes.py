import logging
from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
from services import get_payment_handler
from services.gateway import PaymentGatewayError
from services.results import ActionResult

logger = logging.getLogger(__name__)

payments_bp = Blueprint("payments", __name__)


# Stripe redirects here after checkout
@payments_bp.route("/checkout/result")
@login_required
def checkout_result():
    result = get_payment_handler().reconcile(request.args.get("session_id"))

    body = result.to_dict()
    booking = result.booking
    if result.ok and booking is not None and booking.user_id == current_user.id:
        body["details"] = {
            "address": booking.location.address,
            "date": booking.booking_date.strftime("%b %d, %Y"),
            "arrivingon": booking.start_time.strftime("%I:%M %p"),
            "leavingon": booking.end_time.strftime("%I:%M %p"),
            "plate": booking.plate.upper(),
        }
    return jsonify(body), result.http_status


@payments_bp.route("/webhook", methods=["POST"])
def webhook():
    gateway = current_app.extensions["payment_gateway"]
    try:
        event = gateway.parse_webhook(request.get_data(), request.headers.get("Stripe-Signature"))
    except PaymentGatewayError:
        return jsonify({"success": False, "message": "Invalid webhook"}), 400

    if event["type"] != "checkout.session.completed":
        return jsonify({"success": True, "received": True})

    result = get_payment_handler().reconcile(event["data"]["object"]["id"])
    logger.info(f"Webhook {event['type']} -> {result.code}: {result.message}")

    # Only ask Stripe to retry when the failure might be transient
    if result.code in (ActionResult.INTERNAL_ERROR, ActionResult.EXTERNAL_FAILURE):
        return jsonify(result.to_dict()), result.http_status
    return jsonify({"success": True, "received": True, "code": result.code})
