from datetime import datetime
from flask import Blueprint, request, jsonify
from flask_login import current_user
from models.booking import Booking
from services import get_booking_manager, get_location_manager
from services.results import ActionResult

admin_bp = Blueprint("admin", __name__)


def respond(result):
    return jsonify(result.to_dict()), result.http_status


# Operators only
@admin_bp.before_request
def restrict_to_admin():
    if not current_user.is_authenticated:
        return jsonify({"success": False, "code": "unauthorized", "message": "You must be logged in"}), 401
    if not current_user.is_admin:
        return jsonify({"success": False, "code": "forbidden", "message": "Operator access required"}), 403

#-------------------------------------------------------
# Locations
@admin_bp.route("/locations", methods=["GET"])
def locations():
    manager = get_location_manager()
    now = datetime.now()
    return jsonify({
        "success": True,
        "locations": [
            loc.to_dict(booked_spots=manager.occupancy_now(loc, now)) for loc in manager.list()
        ],
    })


@admin_bp.route("/locations", methods=["POST"])
def create_location():
    result = get_location_manager().create(request.get_json(silent=True) or request.form)
    if result.ok:
        return jsonify(result.to_dict()), 201
    return respond(result)


@admin_bp.route("/locations/<int:location_id>", methods=["GET"])
def location_detail(location_id):
    manager = get_location_manager()
    location = manager.get(location_id)
    if location is None:
        return respond(ActionResult.not_found("Parking location not found"))
    return jsonify({
        "success": True,
        "location": location.to_dict(booked_spots=manager.occupancy_now(location, datetime.now())),
    })


@admin_bp.route("/locations/<int:location_id>", methods=["PUT"])
def update_location(location_id):
    return respond(get_location_manager().update(location_id, request.get_json(silent=True) or request.form))


@admin_bp.route("/locations/<int:location_id>/toggle", methods=["POST"])
def toggle_location(location_id):
    return respond(get_location_manager().toggle(location_id))


@admin_bp.route("/locations/<int:location_id>", methods=["DELETE"])
def delete_location(location_id):
    return respond(get_location_manager().delete(location_id))

#-------------------------------------------------------
# Bookings
@admin_bp.route("/locations/<int:location_id>/bookings")
def location_bookings(location_id):
    try:
        day = datetime.strptime(request.args.get("date", ""), "%Y-%m-%d").date()
    except ValueError:
        return respond(ActionResult.invalid("date (YYYY-MM-DD) is required"))

    status = request.args.get("status", Booking.BOOKED)
    if status not in (Booking.PENDING, Booking.BOOKED, Booking.CANCELLED):
        return respond(ActionResult.invalid(f"Unknown status '{status}'"))

    bookings = get_booking_manager().list_for_location(location_id, day, status)
    return jsonify({"success": True, "bookings": [b.to_dict() for b in bookings]})


@admin_bp.route("/bookings/<int:booking_id>", methods=["DELETE"])
def delete_booking(booking_id):
    return respond(get_booking_manager().delete(booking_id))
