import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify

from extensions import db, mail, migrate, login_manager
from services.gateway import StripeGateway

# Setup Flask
load_dotenv()


def create_app(test_config=None, payment_gateway=None):
    app = Flask(__name__)
    app.config['SECRET_KEY'] = os.getenv("SECRET_KEY", "secret_key")
    app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv("DATABASE_URL", "sqlite:///parking.db")
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Stripe Checkout
    app.config.update(
        STRIPE_SECRET_KEY=os.getenv("STRIPE_SECRET_KEY"),
        STRIPE_WEBHOOK_SECRET=os.getenv("STRIPE_WEBHOOK_SECRET"),
        APP_URL=os.getenv("APP_URL", "http://localhost:5000"),
        CURRENCY=os.getenv("CURRENCY", "inr"),
        PENDING_BOOKING_TTL_MINUTES=int(os.getenv("PENDING_BOOKING_TTL_MINUTES", "30")),
        SEARCH_RADIUS_METERS=int(os.getenv("SEARCH_RADIUS_METERS", "1500")),
    )

    # Flask-Mail
    app.config.update(
        MAIL_SERVER=os.getenv("MAIL_SERVER", "smtp.gmail.com"),
        MAIL_PORT=int(os.getenv("MAIL_PORT", "587")),
        MAIL_USE_TLS=True,
        MAIL_USERNAME=os.getenv("MAIL_USERNAME"),
        MAIL_PASSWORD=os.getenv("MAIL_PASSWORD"),
        MAIL_DEFAULT_SENDER=os.getenv(
            "MAIL_DEFAULT_SENDER", os.getenv("MAIL_USERNAME") or "SmartPark <noreply@smartpark.local>"
        ),
        VIOLATION_EMAIL=os.getenv("VIOLATION_EMAIL"),
    )

    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Init db, migrate, mail, login
    db.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)
    login_manager.init_app(app)

    if payment_gateway is None:
        payment_gateway = StripeGateway(
            api_key=app.config["STRIPE_SECRET_KEY"],
            app_url=app.config["APP_URL"],
            currency=app.config["CURRENCY"],
            webhook_secret=app.config["STRIPE_WEBHOOK_SECRET"],
        )
    app.extensions["payment_gateway"] = payment_gateway

    # Import blueprints
    from blueprints.auth.routes import auth_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")

    from blueprints.user.routes import user_bp
    app.register_blueprint(user_bp)

    from blueprints.payments.routes import payments_bp
    app.register_blueprint(payments_bp, url_prefix="/payments")

    from blueprints.admin.routes import admin_bp
    app.register_blueprint(admin_bp, url_prefix="/admin")

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"success": False, "code": "not_found", "message": "Not found"}), 404

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({"success": False, "code": "internal_error",
                        "message": "An unexpected error occurred."}), 500

    @app.route("/")
    def home():
        return jsonify({"service": "smartpark", "status": "ok"})

    return app


@login_manager.user_loader
def load_user(user_id):
    from models import User
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"success": False, "code": "unauthorized", "message": "You must be logged in"}), 401


app = create_app()

if __name__ == "__main__":
    app.run(debug=True)
