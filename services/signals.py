from blinker import Namespace

_signals = Namespace()

# Sent with ``paths=[...]`` whenever a booking change alters what those views show
booking_changed = _signals.signal("booking-changed")


def notify_booking_changed(booking, location_id=None):
    location_id = location_id or booking.location_id
    booking_changed.send(
        booking,
        paths=["/bookings", "/admin/locations", f"/admin/locations/{location_id}"],
    )
