from extensions import db


class ParkingLocation(db.Model):
    __tablename__ = "parking_locations"

    AVAILABLE = "available"
    NOT_AVAILABLE = "not-available"
    FULL = "full"

    id = db.Column(db.Integer, primary_key=True)
    address = db.Column(db.String(255), nullable=False)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    price_hourly = db.Column(db.Numeric(10, 2), nullable=False)
    number_of_spots = db.Column(db.Integer, nullable=False, default=1)

    # "full" is only ever reported by search, never stored
    status = db.Column(
        db.Enum("available", "not-available", "full", name="location_status"),
        default="available"
    )

    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    bookings = db.relationship("Booking", back_populates="location", lazy="dynamic")

    def to_dict(self, booked_spots=None):
        data = {
            "id": self.id,
            "address": self.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "price_hourly": str(self.price_hourly),
            "number_of_spots": self.number_of_spots,
            "status": self.status,
        }
        if booked_spots is not None:
            data["booked_spots"] = booked_spots
        return data
