from datetime import datetime
from flask import Blueprint, request, jsonify, current_app, abort
from flask_login import login_required, current_user
from models.booking import Booking
from models.parking_location import ParkingLocation
from services import get_booking_manager, get_location_manager, get_mailer
from services.bookings import parse_slot
from services.results import ActionResult

user_bp = Blueprint("user", __name__)


def respond(result):
    return jsonify(result.to_dict()), result.http_status


def own_booking_or_404(booking_id):
    booking = Booking.query.get_or_404(booking_id)
    # Only the owner (or an operator) may touch a booking
    if booking.user_id != current_user.id and not current_user.is_admin:
        abort(404)
    return booking


#-------------------------------------------------------
# Search
@user_bp.route("/search")
def search():
    try:
        lat = float(request.args["lat"])
        lng = float(request.args["lng"])
        _, start, end = parse_slot(
            request.args["arrivingon"], request.args["arrivingtime"], request.args["leavingtime"]
        )
    except (KeyError, ValueError):
        return respond(ActionResult.invalid(
            "lat, lng, arrivingon (YYYY-MM-DD), arrivingtime and leavingtime (HH:MM) are required"
        ))

    if start >= end:
        return respond(ActionResult.invalid("Start time must be before end time"))

    radius = request.args.get("radius", type=int) or current_app.config["SEARCH_RADIUS_METERS"]
    locations = get_location_manager().search_nearby(lat, lng, radius, start, end)
    return jsonify({"success": True, "locations": locations})


@user_bp.route("/locations/<int:location_id>")
def location_detail(location_id):
    location = ParkingLocation.query.get_or_404(location_id)
    return jsonify({"success": True, "location": location.to_dict()})


#-------------------------------------------------------
# Bookings
@user_bp.route("/bookings", methods=["GET"])
@login_required
def my_bookings():
    bookings = get_booking_manager().list_for_user(current_user.id)
    return jsonify({"success": True, "bookings": [b.to_dict() for b in bookings]})


@user_bp.route("/bookings", methods=["POST"])
@login_required
def create_booking():
    data = request.get_json(silent=True) or request.form
    try:
        location_id = int(data["location_id"])
        day, start, end = parse_slot(data["date"], data["starttime"], data["endtime"])
    except (KeyError, TypeError, ValueError):
        return respond(ActionResult.invalid(
            "location_id, date (YYYY-MM-DD), starttime and endtime (HH:MM) are required"
        ))

    plate = (data.get("plate") or "").strip()
    if not plate:
        return respond(ActionResult.invalid("Vehicle plate is required"))

    result = get_booking_manager().create(
        current_user.id, location_id, day, start, end, plate, phone=data.get("phone")
    )
    return respond(result)


@user_bp.route("/bookings/<int:booking_id>", methods=["PATCH"])
@login_required
def edit_booking(booking_id):
    own_booking_or_404(booking_id)

    data = request.get_json(silent=True) or request.form
    try:
        day, start, end = parse_slot(data["date"], data["starttime"], data["endtime"])
    except (KeyError, TypeError, ValueError):
        return respond(ActionResult.invalid("date (YYYY-MM-DD), starttime and endtime (HH:MM) are required"))

    return respond(get_booking_manager().edit(booking_id, day, start, end))


@user_bp.route("/bookings/<int:booking_id>/cancel", methods=["POST"])
@login_required
def cancel_booking(booking_id):
    own_booking_or_404(booking_id)
    return respond(get_booking_manager().cancel(booking_id))


#-------------------------------------------------------
# Violations
@user_bp.route("/violations", methods=["POST"])
@login_required
def report_violation():
    data = request.get_json(silent=True) or request.form
    plate = (data.get("plate") or "").strip()
    address = (data.get("address") or "").strip()
    if not plate or not address:
        return respond(ActionResult.invalid("plate and address are required"))

    timestamp = data.get("timestamp") or datetime.now().strftime("%b %d, %Y %I:%M %p")
    return respond(get_mailer().send_violation(plate, address, timestamp))
