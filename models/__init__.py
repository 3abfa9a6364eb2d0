from .user import User
from .parking_location import ParkingLocation
from .booking import Booking
from .payment import PaymentSession


__all__ = ["User", "ParkingLocation", "Booking", "PaymentSession"]
