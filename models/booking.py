from extensions import db


class Booking(db.Model):
    __tablename__ = "bookings"

    PENDING = "pending"
    BOOKED = "booked"
    CANCELLED = "cancelled"

    # Statuses that occupy a spot for their interval
    HOLDING = (PENDING, BOOKED)

    id = db.Column(db.Integer, primary_key=True)
    location_id = db.Column(db.Integer, db.ForeignKey("parking_locations.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    booking_date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)

    plate = db.Column(db.String(20), nullable=False)
    phone = db.Column(db.String(20))

    status = db.Column(
        db.Enum("pending", "booked", "cancelled", name="booking_status"),
        default="pending",
        nullable=False
    )
    total_amount = db.Column(db.Integer, nullable=False, default=0)  # smallest currency unit
    stripe_session_id = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    __table_args__ = (
        db.CheckConstraint("start_time < end_time", name="ck_booking_interval"),
    )

    # Relationships
    location = db.relationship("ParkingLocation", back_populates="bookings")
    user = db.relationship("User", back_populates="bookings")
    payment_sessions = db.relationship("PaymentSession", back_populates="booking", cascade="all, delete")

    def to_dict(self):
        return {
            "id": self.id,
            "location_id": self.location_id,
            "user_id": self.user_id,
            "booking_date": self.booking_date.isoformat(),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "plate": self.plate,
            "phone": self.phone,
            "status": self.status,
            "total_amount": self.total_amount,
        }
