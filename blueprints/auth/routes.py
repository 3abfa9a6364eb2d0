from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from extensions import db
from models.user import User

auth_bp = Blueprint("auth", __name__)


def form_data():
    return request.get_json(silent=True) or request.form


# Register
@auth_bp.route("/register", methods=["POST"])
def register():
    data = form_data()
    fullname = data.get("fullname")
    username = data.get("username")
    email = data.get("email")
    phone_number = data.get("phone_number")
    password = data.get("password")
    confirm_password = data.get("confirm_password")

    if not all([fullname, username, email, password]):
        return jsonify({"success": False, "message": "fullname, username, email and password are required"}), 400

    if password != confirm_password:
        return jsonify({"success": False, "message": "Passwords do not match"}), 400

    if User.query.filter((User.email == email) | (User.username == username)).first():
        return jsonify({"success": False, "message": "Username or email already exists"}), 409

    user = User(
        fullname=fullname,
        username=username,
        email=email,
        phone_number=phone_number,
    )
    user.set_password(password)

    db.session.add(user)
    db.session.commit()

    return jsonify({"success": True, "message": "Registered. Please log in.", "user_id": user.id}), 201


# Login
@auth_bp.route("/login", methods=["POST"])
def login():
    data = form_data()
    username = data.get("username")
    password = data.get("password")

    user = User.query.filter_by(username=username).first()
    if user and user.check_password(password):
        login_user(user)
        return jsonify({"success": True, "message": "Logged in", "role": user.role})

    return jsonify({"success": False, "message": "Wrong username or password"}), 401


# Logout
@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True, "message": "Logged out"})


@auth_bp.route("/me")
@login_required
def me():
    return jsonify({
        "id": current_user.id,
        "fullname": current_user.fullname,
        "username": current_user.username,
        "email": current_user.email,
        "role": current_user.role,
    })
