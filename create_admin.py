import os
from app import app, db
from models.user import User

with app.app_context():
    db.create_all()
    existing_admin = User.query.filter_by(username="admin").first()
    if existing_admin:
        print("Admin account already exists!")
    else:
        admin = User(
            fullname="Administrator",
            username="admin",
            email=os.getenv("ADMIN_EMAIL", "admin@example.com"),
            phone_number="0000000000",
            role="admin"
        )
        admin.set_password(os.getenv("ADMIN_PASSWORD", "admin123"))
        db.session.add(admin)
        db.session.commit()
        print("Admin account created successfully!")
