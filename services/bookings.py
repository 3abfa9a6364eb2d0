import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError

from models.booking import Booking
from models.parking_location import ParkingLocation
from services.availability import AvailabilityChecker
from services.gateway import PaymentGatewayError
from services.pricing import compute_price
from services.results import ActionResult
from services.signals import notify_booking_changed

logger = logging.getLogger(__name__)

SLOT_TAKEN = "These time slots are no longer available. Please try different times."


def parse_slot(booking_date, start, end):
    """Turn ``YYYY-MM-DD`` and two ``HH:MM`` strings into (date, start, end).

    Raises ValueError on malformed input. Ordering is not checked here.
    """
    day = datetime.strptime(booking_date, "%Y-%m-%d").date()
    start_time = datetime.combine(day, datetime.strptime(start, "%H:%M").time())
    end_time = datetime.combine(day, datetime.strptime(end, "%H:%M").time())
    return day, start_time, end_time


class BookingManager:
    """Create, cancel, delete and edit bookings against location capacity.

    The availability check and the write that depends on it run under a row
    lock on the location, so two requests for the last spot cannot both win.
    """

    def __init__(self, session, gateway, hold_minutes=30):
        self.session = session
        self.gateway = gateway
        self.hold_minutes = hold_minutes
        self.checker = AvailabilityChecker(session)

    def _lock_location(self, location_id):
        return self.session.get(ParkingLocation, location_id, with_for_update=True)

    def create(self, user_id, location_id, booking_date, start, end, plate, phone=None):
        if start >= end:
            return ActionResult.invalid("Start time must be before end time")

        try:
            location = self._lock_location(location_id)
            if location is None:
                self.session.rollback()
                return ActionResult.not_found("Parking location not found")

            if location.status == ParkingLocation.NOT_AVAILABLE:
                self.session.rollback()
                return ActionResult.conflict("This parking location is not taking bookings")

            if not self.checker.is_available(location.id, start, end, location.number_of_spots):
                self.session.rollback()
                return ActionResult.conflict(SLOT_TAKEN)

            amount = compute_price(start, end, location.price_hourly)
            booking = Booking(
                location_id=location.id,
                user_id=user_id,
                booking_date=booking_date,
                start_time=start,
                end_time=end,
                plate=plate,
                phone=phone,
                status=Booking.PENDING,
                total_amount=amount,
            )
            self.session.add(booking)
            self.session.flush()

            if amount == 0:
                # nothing to charge, confirm straight away
                booking.status = Booking.BOOKED
                self.session.commit()
                notify_booking_changed(booking)
                return ActionResult.success("Booking confirmed", booking=booking)

            checkout = self.gateway.create_checkout(
                amount=amount,
                name=f"Parking at {location.address}",
                description=f"{start:%b %d, %Y %I:%M %p} - {end:%I:%M %p}",
                metadata={"bookingid": booking.id},
                cancel_path="/bookings",
                expires_in=self.hold_minutes * 60,
            )
            self.session.commit()
        except PaymentGatewayError:
            self.session.rollback()
            return ActionResult.external_failure("Could not start the payment. Please try again.")
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to create booking at location {location_id}")
            return ActionResult.internal_error()

        logger.info(f"Booking {booking.id} pending payment of {amount} at location {location_id}")
        notify_booking_changed(booking)
        return ActionResult.redirect(checkout.url, amount, booking=booking)

    def cancel(self, booking_id):
        try:
            booking = self.session.get(Booking, booking_id)
            if booking is None:
                return ActionResult.not_found()

            if booking.status == Booking.CANCELLED:
                return ActionResult.success("Booking already cancelled", booking=booking)

            booking.status = Booking.CANCELLED
            booking.total_amount = 0
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to cancel booking {booking_id}")
            return ActionResult.internal_error("An error occurred while cancelling.")

        logger.info(f"Booking {booking_id} cancelled")
        notify_booking_changed(booking)
        return ActionResult.success("Booking cancelled", booking=booking)

    def delete(self, booking_id):
        try:
            booking = self.session.get(Booking, booking_id)
            if booking is None:
                return ActionResult.not_found()

            location_id = booking.location_id
            self.session.delete(booking)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to delete booking {booking_id}")
            return ActionResult.internal_error()

        logger.info(f"Booking {booking_id} deleted by operator")
        notify_booking_changed(booking, location_id=location_id)
        return ActionResult.success("Booking deleted")

    def edit(self, booking_id, booking_date, start, end, return_path="/bookings"):
        if start >= end:
            return ActionResult.invalid("Start time must be before end time")

        try:
            booking = self.session.get(Booking, booking_id)
            if booking is None:
                return ActionResult.not_found()

            if booking.status != Booking.BOOKED:
                return ActionResult.conflict(f"A {booking.status} booking cannot be edited")

            location = self._lock_location(booking.location_id)
            if location is None:
                self.session.rollback()
                return ActionResult.not_found("Parking location not found")

            if location.status == ParkingLocation.NOT_AVAILABLE:
                self.session.rollback()
                return ActionResult.conflict("This parking location is not taking bookings")

            if not self.checker.is_available(
                location.id, start, end, location.number_of_spots, exclude_booking_id=booking.id
            ):
                self.session.rollback()
                return ActionResult.conflict(SLOT_TAKEN)

            new_total = compute_price(start, end, location.price_hourly)
            difference = new_total - booking.total_amount

            if difference <= 0:
                booking.booking_date = booking_date
                booking.start_time = start
                booking.end_time = end
                booking.total_amount = new_total
                self.session.commit()
                logger.info(f"Booking {booking_id} moved to {start} - {end}, amount {new_total}")
                notify_booking_changed(booking)
                return ActionResult.success("Booking updated", booking=booking)

            # the booking changes only once the extra charge is captured
            checkout = self.gateway.create_checkout(
                amount=difference,
                name=f"Booking Update: {location.address}",
                description="Additional charge for time extension",
                metadata={
                    "isEdit": "true",
                    "bookingId": booking.id,
                    "baseAmount": booking.total_amount,
                    "newDateISO": booking_date.isoformat(),
                    "newStartTimeISO": start.isoformat(),
                    "newEndTimeISO": end.isoformat(),
                    "newTotalAmount": new_total,
                },
                cancel_path=return_path,
            )
            self.session.rollback()
        except PaymentGatewayError:
            self.session.rollback()
            return ActionResult.external_failure("Could not start the payment. Please try again.")
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to edit booking {booking_id}")
            return ActionResult.internal_error()

        logger.info(f"Booking {booking_id} edit awaiting payment of {difference}")
        return ActionResult.redirect(
            checkout.url, difference, message="Additional payment required", booking=booking
        )

    def list_for_location(self, location_id, booking_date, status=Booking.BOOKED):
        return (
            self.session.query(Booking)
            .filter(
                Booking.location_id == location_id,
                Booking.booking_date == booking_date,
                Booking.status == (status or Booking.BOOKED),
            )
            .order_by(Booking.start_time.asc())
            .all()
        )

    def list_for_user(self, user_id):
        return (
            self.session.query(Booking)
            .filter_by(user_id=user_id)
            .order_by(Booking.start_time.desc())
            .all()
        )

    def expire_pending(self, ttl=None, now=None):
        """Cancel pending bookings whose payment never completed.

        Returns the number of bookings released.
        """
        if ttl is None:
            ttl = timedelta(minutes=self.hold_minutes)
        if now is None:
            # created_at is stamped by the database clock, in UTC
            now = datetime.now(timezone.utc).replace(tzinfo=None)
        cutoff = now - ttl

        stale = (
            self.session.query(Booking)
            .filter(Booking.status == Booking.PENDING, Booking.created_at < cutoff)
            .all()
        )
        for booking in stale:
            booking.status = Booking.CANCELLED
            booking.total_amount = 0
            logger.info(f"Booking {booking.id} expired unpaid (created {booking.created_at})")

        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Failed to expire pending bookings")
            raise

        for booking in stale:
            notify_booking_changed(booking)
        return len(stale)
