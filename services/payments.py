import logging
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.booking import Booking
from models.parking_location import ParkingLocation
from models.payment import PaymentSession
from services.availability import AvailabilityChecker
from services.gateway import PaymentGatewayError
from services.results import ActionResult
from services.signals import notify_booking_changed

logger = logging.getLogger(__name__)


class PaymentCallbackHandler:
    """Applies the outcome of a completed checkout session to its booking.

    Each session is applied at most once: the session id is recorded in
    ``payment_sessions`` together with the booking change, and a session that
    is already recorded is acknowledged without touching anything.
    """

    def __init__(self, session, gateway, mailer=None):
        self.session = session
        self.gateway = gateway
        self.mailer = mailer
        self.checker = AvailabilityChecker(session)

    def reconcile(self, session_id):
        if not session_id:
            return ActionResult.invalid("Invalid session id")

        try:
            outcome = self.gateway.retrieve_outcome(session_id)
        except PaymentGatewayError:
            return ActionResult.external_failure("Could not retrieve the payment session")

        if not outcome.paid:
            logger.warning(f"Checkout session {session_id} was not paid")
            return ActionResult.external_failure("Payment failed")

        is_edit = outcome.metadata.get("isEdit") == "true"
        try:
            if self._already_processed(session_id):
                return ActionResult.success("Payment already processed")

            if is_edit:
                result = self._confirm_edit(outcome)
            else:
                result = self._confirm_booking(outcome)
        except IntegrityError:
            # a concurrent delivery of the same session got there first
            self.session.rollback()
            logger.info(f"Checkout session {session_id} applied concurrently")
            return ActionResult.success("Payment already processed")
        except (KeyError, ValueError) as e:
            self.session.rollback()
            logger.error(f"Checkout session {session_id} carries bad metadata: {e}")
            return ActionResult.invalid("Invalid payment metadata")
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to apply checkout session {session_id}")
            return ActionResult.internal_error()

        if result.code == ActionResult.OK:
            notify_booking_changed(result.booking)
            if not is_edit and self.mailer is not None:
                self.mailer.send_confirmation(result.booking)
        return result

    def _already_processed(self, session_id):
        return self.session.query(PaymentSession).filter_by(session_id=session_id).first() is not None

    def _record(self, outcome, booking, kind):
        self.session.add(PaymentSession(
            session_id=outcome.session_id,
            booking_id=booking.id,
            kind=kind,
            amount_received=outcome.amount_received,
        ))

    def _confirm_booking(self, outcome):
        booking = self.session.get(Booking, int(outcome.metadata["bookingid"]))
        if booking is None:
            return ActionResult.not_found()

        self._record(outcome, booking, "booking")

        if booking.status != Booking.PENDING:
            self.session.commit()
            logger.error(
                f"Session {outcome.session_id} paid {outcome.amount_received} for booking "
                f"{booking.id} which is {booking.status}; refund needed"
            )
            return ActionResult.conflict("Booking is no longer awaiting payment", booking=booking)

        booking.status = Booking.BOOKED
        booking.stripe_session_id = outcome.session_id
        booking.total_amount = outcome.amount_received
        self.session.commit()

        logger.info(f"Booking {booking.id} confirmed by session {outcome.session_id}")
        return ActionResult.success("Booking confirmed", booking=booking)

    def _confirm_edit(self, outcome):
        metadata = outcome.metadata
        booking = self.session.get(Booking, int(metadata["bookingId"]))
        if booking is None:
            return ActionResult.not_found()

        new_date = date.fromisoformat(metadata["newDateISO"])
        new_start = datetime.fromisoformat(metadata["newStartTimeISO"])
        new_end = datetime.fromisoformat(metadata["newEndTimeISO"])
        new_total = int(metadata["newTotalAmount"])
        base_amount = int(metadata["baseAmount"])

        location = self.session.get(ParkingLocation, booking.location_id, with_for_update=True)
        self._record(outcome, booking, "edit")

        # priced against an older total; another change landed first
        if booking.total_amount != base_amount:
            self.session.commit()
            logger.error(
                f"Session {outcome.session_id} paid for an edit of booking {booking.id} "
                f"priced against {base_amount}, booking now totals {booking.total_amount}; refund needed"
            )
            return ActionResult.conflict(
                "This booking changed before the payment completed. Please contact support.",
                booking=booking,
            )

        if booking.status == Booking.CANCELLED or not self.checker.is_available(
            location.id, new_start, new_end, location.number_of_spots, exclude_booking_id=booking.id
        ):
            self.session.commit()
            logger.error(
                f"Session {outcome.session_id} paid for an edit of booking {booking.id} "
                f"that can no longer be applied; refund needed"
            )
            return ActionResult.conflict(
                "These time slots are no longer available. Please contact support.", booking=booking
            )

        booking.booking_date = new_date
        booking.start_time = new_start
        booking.end_time = new_end
        booking.total_amount = new_total
        booking.status = Booking.BOOKED
        booking.stripe_session_id = outcome.session_id
        self.session.commit()

        logger.info(f"Booking {booking.id} edit applied by session {outcome.session_id}")
        return ActionResult.success("Booking updated", booking=booking)
