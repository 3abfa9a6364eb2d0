import random
from decimal import Decimal
from app import app
from extensions import db
from models import ParkingLocation, User

# ====== CONFIG ======
CENTER = (19.2863, 72.8667)  # Mira Road
NUM_LOCATIONS = 12
SPREAD = 0.01  # ~1km in degrees
STREETS = ["Station Road", "Shanti Park", "Poonam Sagar", "Beverly Park", "Kanakia", "Hatkesh"]
# =====================


def create_locations():
    print("Creating parking locations...")

    locations = []
    for i in range(NUM_LOCATIONS):
        locations.append(ParkingLocation(
            address=f"{random.randint(1, 200)} {random.choice(STREETS)}, Mira Road",
            latitude=CENTER[0] + random.uniform(-SPREAD, SPREAD),
            longitude=CENTER[1] + random.uniform(-SPREAD, SPREAD),
            price_hourly=Decimal(random.choice([20, 25, 30, 40, 50])),
            number_of_spots=random.randint(2, 20),
        ))

    db.session.add_all(locations)
    db.session.commit()
    print(f"Created {len(locations)} locations.")


def create_users():
    print("Creating demo users...")

    users = [
        ("Asha Patil", "asha", "asha@example.com", "9820000001"),
        ("Rohan Shah", "rohan", "rohan@example.com", "9820000002"),
        ("Meera Iyer", "meera", "meera@example.com", "9820000003"),
    ]
    created = 0
    for fullname, username, email, phone in users:
        if User.query.filter_by(username=username).first():
            continue
        user = User(fullname=fullname, username=username, email=email, phone_number=phone)
        user.set_password("123456")
        db.session.add(user)
        created += 1

    db.session.commit()
    print(f"Created {created} users.")


if __name__ == "__main__":
    with app.app_context():
        db.create_all()
        create_locations()
        create_users()
        print("Done.")
