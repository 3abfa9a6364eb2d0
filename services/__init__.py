from flask import current_app

from extensions import db, mail
from services.bookings import BookingManager
from services.locations import LocationManager
from services.mailer import Mailer
from services.payments import PaymentCallbackHandler


def get_booking_manager():
    return BookingManager(
        db.session,
        current_app.extensions["payment_gateway"],
        hold_minutes=current_app.config["PENDING_BOOKING_TTL_MINUTES"],
    )


def get_mailer():
    return Mailer(mail, violation_recipient=current_app.config.get("VIOLATION_EMAIL"))


def get_payment_handler():
    return PaymentCallbackHandler(db.session, current_app.extensions["payment_gateway"], get_mailer())


def get_location_manager():
    return LocationManager(db.session)
