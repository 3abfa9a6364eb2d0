from models.booking import Booking


class AvailabilityChecker:
    """Capacity checks for a location over a half-open interval ``[start, end)``.

    Two intervals overlap iff ``s1 < e2 and s2 < e1``; a booking ending exactly
    when another starts does not compete with it. Pending and booked bookings
    both hold a spot.
    """

    def __init__(self, session):
        self.session = session

    def overlapping_query(self, location_id, start, end, exclude_booking_id=None):
        query = self.session.query(Booking).filter(
            Booking.location_id == location_id,
            Booking.status.in_(Booking.HOLDING),
            Booking.start_time < end,
            Booking.end_time > start,
        )
        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)
        return query

    def count_overlapping(self, location_id, start, end, exclude_booking_id=None):
        return self.overlapping_query(location_id, start, end, exclude_booking_id).count()

    def is_available(self, location_id, start, end, capacity, exclude_booking_id=None):
        return self.count_overlapping(location_id, start, end, exclude_booking_id) < capacity

    def occupancy(self, location_id, start, end):
        """Spots taken at the location during ``[start, end)``."""
        return self.count_overlapping(location_id, start, end)
