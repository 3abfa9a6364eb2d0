import json
from datetime import date, datetime, time
from decimal import Decimal

import pytest

from app import create_app
from extensions import db, mail
from models import Booking, ParkingLocation, User
from services.availability import AvailabilityChecker
from services.bookings import BookingManager
from services.gateway import CheckoutOutcome, CheckoutSession, PaymentGatewayError
from services.mailer import Mailer
from services.payments import PaymentCallbackHandler

DAY = date(2026, 11, 2)
PASSWORD = "secret123"


def at(hour, minute=0, day=DAY):
    return datetime.combine(day, time(hour, minute))


class FakeGateway:
    """Stands in for Stripe Checkout; ``pay`` plays the customer finishing checkout."""

    def __init__(self):
        self.checkouts = []
        self.outcomes = {}
        self.fail_create = False

    def create_checkout(self, amount, name, description, metadata, cancel_path, expires_in=None):
        if self.fail_create:
            raise PaymentGatewayError("card network unreachable")

        session_id = f"cs_test_{len(self.checkouts) + 1}"
        self.checkouts.append({
            "id": session_id,
            "amount": amount,
            "name": name,
            "metadata": {key: str(value) for key, value in metadata.items()},
            "cancel_path": cancel_path,
            "expires_in": expires_in,
        })
        return CheckoutSession(session_id, f"https://checkout.stripe.test/{session_id}")

    def pay(self, session_id=None, amount=None, paid=True):
        checkout = self.checkouts[-1] if session_id is None else \
            next(c for c in self.checkouts if c["id"] == session_id)
        self.outcomes[checkout["id"]] = CheckoutOutcome(
            checkout["id"],
            paid,
            checkout["amount"] if amount is None else amount,
            dict(checkout["metadata"]),
        )
        return checkout["id"]

    def retrieve_outcome(self, session_id):
        if session_id not in self.outcomes:
            raise PaymentGatewayError(f"No such checkout session: {session_id}")
        return self.outcomes[session_id]

    def parse_webhook(self, payload, signature):
        if signature != "t=1,v1=valid":
            raise PaymentGatewayError("bad signature")
        return json.loads(payload)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def app(gateway):
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test",
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "MAIL_DEFAULT_SENDER": "SmartPark <noreply@smartpark.test>",
            "VIOLATION_EMAIL": "violations@smartpark.test",
            "APP_URL": "http://smartpark.test",
        },
        payment_gateway=gateway,
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(username="asha", role="user", email=None):
    user = User(
        fullname=f"{username.title()} Tester",
        username=username,
        email=email or f"{username}@example.com",
        phone_number="9820000001",
        role=role,
    )
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


def make_location(capacity=1, price="60", status="available", lat=19.2863, lng=72.8667, address=None):
    location = ParkingLocation(
        address=address or "12 Station Road, Mira Road",
        latitude=lat,
        longitude=lng,
        price_hourly=Decimal(price),
        number_of_spots=capacity,
        status=status,
    )
    db.session.add(location)
    db.session.commit()
    return location


def make_booking(location, user, start, end, status=Booking.BOOKED, amount=None, created_at=None):
    booking = Booking(
        location_id=location.id,
        user_id=user.id,
        booking_date=start.date(),
        start_time=start,
        end_time=end,
        plate="MH04AB1234",
        phone="9820000001",
        status=status,
        total_amount=amount if amount is not None else 0,
    )
    if created_at is not None:
        booking.created_at = created_at
    db.session.add(booking)
    db.session.commit()
    return booking


@pytest.fixture
def user(app):
    return make_user()


@pytest.fixture
def admin(app):
    return make_user("admin", role="admin")


@pytest.fixture
def location(app):
    return make_location()


@pytest.fixture
def checker(app):
    return AvailabilityChecker(db.session)


@pytest.fixture
def manager(app, gateway):
    return BookingManager(db.session, gateway, hold_minutes=30)


@pytest.fixture
def handler(app, gateway):
    return PaymentCallbackHandler(db.session, gateway, Mailer(mail, "violations@smartpark.test"))


def login(client, username, password=PASSWORD):
    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200
    return response
