from app import app
from services import get_booking_manager

if __name__ == "__main__":
    with app.app_context():
        ttl = app.config["PENDING_BOOKING_TTL_MINUTES"]
        print(f"Releasing bookings left unpaid for more than {ttl} minutes...")

        released = get_booking_manager().expire_pending()

        print(f"Released {released} pending booking(s).")
