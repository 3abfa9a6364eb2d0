import logging
import math
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import SQLAlchemyError

from models.booking import Booking
from models.parking_location import ParkingLocation
from services.availability import AvailabilityChecker
from services.results import ActionResult

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000

EDITABLE_FIELDS = ("address", "latitude", "longitude", "price_hourly", "number_of_spots", "status")


def haversine(lat1, lon1, lat2, lon2):
    """Great-circle distance in meters."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = math.sin(d_lat / 2) ** 2 + \
        math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * \
        math.sin(d_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def _clean(fields):
    """Validate and coerce editable location fields. Raises ValueError."""
    cleaned = {}
    for key in EDITABLE_FIELDS:
        if key not in fields or fields[key] is None:
            continue
        value = fields[key]
        if key in ("latitude", "longitude"):
            value = float(value)
        elif key == "price_hourly":
            try:
                value = Decimal(str(value))
            except InvalidOperation:
                raise ValueError("price_hourly must be a number")
            if value < 0:
                raise ValueError("price_hourly must not be negative")
        elif key == "number_of_spots":
            value = int(value)
            if value < 1:
                raise ValueError("number_of_spots must be at least 1")
        elif key == "status":
            if value not in (ParkingLocation.AVAILABLE, ParkingLocation.NOT_AVAILABLE):
                raise ValueError("status must be 'available' or 'not-available'")
        cleaned[key] = value
    return cleaned


class LocationManager:
    def __init__(self, session):
        self.session = session
        self.checker = AvailabilityChecker(session)

    def get(self, location_id):
        return self.session.get(ParkingLocation, location_id)

    def list(self):
        return self.session.query(ParkingLocation).order_by(ParkingLocation.id.asc()).all()

    def create(self, fields):
        try:
            cleaned = _clean(fields)
        except (TypeError, ValueError) as e:
            return ActionResult.invalid(str(e))

        missing = [key for key in ("address", "latitude", "longitude", "price_hourly") if key not in cleaned]
        if missing:
            return ActionResult.invalid(f"Missing fields: {', '.join(missing)}")

        location = ParkingLocation(**cleaned)
        try:
            self.session.add(location)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Failed to create parking location")
            return ActionResult.internal_error()

        logger.info(f"Parking location {location.id} created at {location.address}")
        return ActionResult.success("Location created", data={"location": location.to_dict()})

    def update(self, location_id, fields):
        location = self.get(location_id)
        if location is None:
            return ActionResult.not_found("Parking location not found")

        try:
            cleaned = _clean(fields)
        except (TypeError, ValueError) as e:
            return ActionResult.invalid(str(e))

        for key, value in cleaned.items():
            setattr(location, key, value)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to update parking location {location_id}")
            return ActionResult.internal_error()

        return ActionResult.success("Location updated", data={"location": location.to_dict()})

    def toggle(self, location_id):
        location = self.get(location_id)
        if location is None:
            return ActionResult.not_found("Parking location not found")

        if location.status == ParkingLocation.AVAILABLE:
            location.status = ParkingLocation.NOT_AVAILABLE
        else:
            location.status = ParkingLocation.AVAILABLE
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to toggle parking location {location_id}")
            return ActionResult.internal_error()

        return ActionResult.success(f"Location is now {location.status}", data={"location": location.to_dict()})

    def delete(self, location_id):
        location = self.get(location_id)
        if location is None:
            return ActionResult.not_found("Parking location not found")

        if location.bookings.count():
            return ActionResult.conflict("Location still has bookings and cannot be deleted")

        try:
            self.session.delete(location)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to delete parking location {location_id}")
            return ActionResult.internal_error()

        logger.info(f"Parking location {location_id} deleted")
        return ActionResult.success("Location deleted")

    def search_nearby(self, lat, lng, max_distance, start, end):
        """Available locations within ``max_distance`` meters, nearest first.

        Each entry reports the spots taken during ``[start, end)`` and is
        marked full when none are left.
        """
        locations = (
            self.session.query(ParkingLocation)
            .filter(ParkingLocation.status != ParkingLocation.NOT_AVAILABLE)
            .all()
        )

        found = []
        for location in locations:
            distance = haversine(lat, lng, location.latitude, location.longitude)
            if distance > max_distance:
                continue

            booked = self.checker.occupancy(location.id, start, end)
            data = location.to_dict(booked_spots=booked)
            if booked >= location.number_of_spots:
                data["status"] = ParkingLocation.FULL
            data["distance"] = round(distance)
            found.append(data)

        found.sort(key=lambda item: item["distance"])
        return found

    def occupancy_now(self, location, now):
        """Bookings holding a spot at this instant."""
        return (
            self.session.query(Booking)
            .filter(
                Booking.location_id == location.id,
                Booking.status.in_(Booking.HOLDING),
                Booking.start_time <= now,
                Booking.end_time > now,
            )
            .count()
        )
