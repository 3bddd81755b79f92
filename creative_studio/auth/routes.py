from flask import jsonify
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from ..extensions import db
from ..models import User, UserSettings
from ..projects.helpers import bind_form, form_error_response, json_payload
from . import bp
from .forms import LoginForm, RegistrationForm


@bp.route("/csrf-token", methods=["GET"])
def csrf_token():
    return jsonify({"csrf_token": generate_csrf()})


@bp.route("/register", methods=["POST"])
def register():
    if current_user.is_authenticated:
        return jsonify({"user": current_user.to_dict()})

    form = bind_form(RegistrationForm, json_payload())
    if not form.validate():
        return form_error_response(form)

    user = User(email=form.email.data.lower(), display_name=form.display_name.data.strip())
    user.set_password(form.password.data)
    user.settings = UserSettings()
    db.session.add(user)
    db.session.commit()
    return jsonify({"user": user.to_dict(), "message": "Account created successfully. Please sign in."}), 201


@bp.route("/login", methods=["POST"])
def login():
    if current_user.is_authenticated:
        return jsonify({"user": current_user.to_dict()})

    form = bind_form(LoginForm, json_payload())
    if not form.validate():
        return form_error_response(form)

    user = User.query.filter_by(email=form.email.data.lower()).first()
    if user and user.check_password(form.password.data):
        login_user(user)
        return jsonify({"user": user.to_dict(), "message": f"Welcome back, {user.display_name}!"})

    return jsonify({"error": "Invalid email or password."}), 401


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"message": "You have been signed out."})
