from conftest import at, make_booking, make_location
from models import Booking


def test_touching_intervals_do_not_overlap(checker, location, user):
    make_booking(location, user, at(10), at(11))

    assert checker.count_overlapping(location.id, at(11), at(12)) == 0
    assert checker.count_overlapping(location.id, at(9), at(10)) == 0
    assert checker.is_available(location.id, at(11), at(12), capacity=1)


def test_partial_overlap_conflicts(checker, location, user):
    make_booking(location, user, at(10), at(11))

    assert checker.count_overlapping(location.id, at(10, 30), at(11, 30)) == 1
    assert checker.count_overlapping(location.id, at(9, 30), at(10, 1)) == 1
    assert checker.count_overlapping(location.id, at(9), at(12)) == 1
    assert checker.count_overlapping(location.id, at(10, 15), at(10, 45)) == 1


def test_equal_count_and_capacity_is_not_available(checker, user):
    location = make_location(capacity=2)
    make_booking(location, user, at(9), at(11))
    assert checker.is_available(location.id, at(10), at(12), capacity=2)

    make_booking(location, user, at(10), at(12))
    assert checker.count_overlapping(location.id, at(10), at(11)) == 2
    assert not checker.is_available(location.id, at(10), at(11), capacity=2)


def test_pending_holds_a_spot_cancelled_does_not(checker, location, user):
    make_booking(location, user, at(9), at(10), status=Booking.PENDING)
    make_booking(location, user, at(9), at(10), status=Booking.CANCELLED)

    assert checker.count_overlapping(location.id, at(9), at(10)) == 1


def test_other_locations_are_ignored(checker, location, user):
    elsewhere = make_location(address="Elsewhere")
    make_booking(elsewhere, user, at(9), at(10))

    assert checker.occupancy(location.id, at(9), at(10)) == 0
    assert checker.occupancy(elsewhere.id, at(9), at(10)) == 1


def test_excluded_booking_is_not_counted(checker, location, user):
    mine = make_booking(location, user, at(9), at(10))

    assert not checker.is_available(location.id, at(9), at(11), capacity=1)
    assert checker.is_available(location.id, at(9), at(11), capacity=1, exclude_booking_id=mine.id)
