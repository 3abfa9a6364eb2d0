import logging
import smtplib

from flask import render_template
from flask_mail import Message

from services.results import ActionResult

logger = logging.getLogger(__name__)


class Mailer:
    """Transactional email. Delivery problems never abort a booking flow."""

    def __init__(self, mail, violation_recipient=None):
        self.mail = mail
        self.violation_recipient = violation_recipient

    def send_confirmation(self, booking):
        if not booking.user or not booking.user.email:
            return ActionResult.external_failure("Booking owner has no email address")

        msg = Message(
            subject="Your booking has been confirmed",
            recipients=[booking.user.email],
            html=render_template(
                "email/booking_confirmed.html",
                first_name=booking.user.fullname.split(" ")[0],
                booking_date=booking.booking_date.strftime("%b %d, %Y"),
                arriving_on=booking.start_time.strftime("%I:%M %p"),
                leaving_on=booking.end_time.strftime("%I:%M %p"),
                plate=booking.plate.upper(),
                address=booking.location.address,
            ),
        )
        return self._send(msg)

    def send_violation(self, plate, address, timestamp):
        if not self.violation_recipient:
            return ActionResult.external_failure("No violation recipient configured")

        msg = Message(
            subject="Violation reported",
            recipients=[self.violation_recipient],
            html=render_template(
                "email/violation_reported.html",
                plate=plate.upper(),
                address=address,
                timestamp=timestamp,
            ),
        )
        return self._send(msg)

    def _send(self, msg):
        try:
            self.mail.send(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{msg.subject}' to {msg.recipients}: {e}")
            return ActionResult.external_failure("Failed to send email")
        return ActionResult.success("Email sent")
