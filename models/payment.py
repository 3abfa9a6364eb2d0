from extensions import db


class PaymentSession(db.Model):
    """A checkout session whose outcome has already been applied.

    Inserted in the same transaction as the booking change it triggered, so a
    redelivered callback for the same session finds the row and does nothing.
    """
    __tablename__ = "payment_sessions"

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(255), nullable=False, unique=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=True)

    kind = db.Column(
        db.Enum("booking", "edit", name="payment_session_kind"),
        nullable=False
    )
    amount_received = db.Column(db.Integer, nullable=False, default=0)

    processed_at = db.Column(db.DateTime, server_default=db.func.now())

    booking = db.relationship("Booking", back_populates="payment_sessions")
