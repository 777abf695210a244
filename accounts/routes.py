from flask import Blueprint, render_template, request, redirect, url_for, flash, session, current_app
from extensions import db
from accounts.models import User
from helpers import is_valid_email, safe_next
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime
from flask_login import login_user, logout_user, current_user

accounts_bp = Blueprint("accounts", __name__, url_prefix="/auth")

MIN_PASSWORD_LENGTH = 6


def _validate_credentials(email, password):
    if not is_valid_email(email):
        return "Enter a valid email"
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"At least {MIN_PASSWORD_LENGTH} characters"
    return None


@accounts_bp.route("/", methods=["GET", "POST"])
def login():
    mode = request.values.get("mode", "signin")
    if mode not in ("signin", "signup"):
        mode = "signin"

    next_url = request.args.get("next")
    if request.method == "GET" and current_user.is_authenticated:
        return redirect(safe_next(next_url, url_for("reports.dashboard")))

    if request.method == "POST":
        email = (request.form.get("email") or "").strip().lower()
        password = request.form.get("password") or ""

        error = _validate_credentials(email, password)
        if error is None:
            if mode == "signin":
                error = _sign_in(email, password)
            else:
                error = _sign_up(email, password)

        if error is None:
            return redirect(safe_next(next_url, url_for("reports.dashboard")))

        return render_template(
            "accounts/login.html", mode=mode, email=email, error=error, next_url=next_url
        ), 400

    return render_template("accounts/login.html", mode=mode, email="", error=None, next_url=next_url)


def _sign_in(email, password):
    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        current_app.logger.info("Failed sign-in for %s", email)
        return "Invalid login credentials"

    user.last_login = datetime.utcnow()
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Error recording last login: %s", e)

    login_user(user)
    return None


def _sign_up(email, password):
    if User.query.filter_by(email=email).first():
        return "User already registered"

    new_user = User(email=email)
    new_user.set_password(password)
    db.session.add(new_user)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Error creating user %s: %s", email, e)
        return "Something went wrong"

    login_user(new_user)
    flash("Account created. Welcome!", "success")
    return None


@accounts_bp.route("/logout", methods=["POST"])
def logout():
    theme = session.get("theme")
    logout_user()
    session.clear()
    if theme:
        session["theme"] = theme
    return redirect(url_for("accounts.login"))
