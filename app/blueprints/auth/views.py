"""Login, logout and password reset."""
import logging

from flask import flash, redirect, render_template, request, url_for

from app.blueprints.auth import auth_bp
from app.blueprints.auth.session import (
    client_context,
    end_session,
    is_authenticated,
    start_session,
)
from app.exceptions import ApiError
from app.services import auth_service

logger = logging.getLogger(__name__)


@auth_bp.route("/")
def index():
    if is_authenticated():
        return redirect(url_for("dashboard.overview"))
    return redirect(url_for("auth.login"))


@auth_bp.route("/login", methods=["GET", "POST"])
async def login():
    if request.method == "GET":
        return render_template("auth/login.html")

    username = request.form.get("username", "").strip()
    password = request.form.get("password", "")
    if not username or not password:
        flash("Username and password are required.", "error")
        return render_template("auth/login.html", username=username), 400

    try:
        token = await auth_service.login(client_context(), username, password)
    except ApiError as e:
        flash(e.message, "error")
        return render_template("auth/login.html", username=username), 401

    start_session(username, token)
    next_url = request.args.get("next", "")
    # only follow local paths
    if not next_url.startswith("/") or next_url.startswith("//"):
        next_url = url_for("dashboard.overview")
    return redirect(next_url)


@auth_bp.route("/logout", methods=["GET", "POST"])
def logout():
    end_session()
    return redirect(url_for("auth.login"))


@auth_bp.route("/reset-password", methods=["GET", "POST"])
async def reset_password():
    if request.method == "GET":
        return render_template("auth/reset_password.html")

    username = request.form.get("username", "").strip()
    email = request.form.get("email", "").strip()
    new_password = request.form.get("new_password", "")
    confirm = request.form.get("confirm_password", "")

    if not username or not email or not new_password:
        flash("All fields are required.", "error")
        return render_template("auth/reset_password.html", username=username, email=email), 400
    if new_password != confirm:
        flash("Passwords do not match.", "error")
        return render_template("auth/reset_password.html", username=username, email=email), 400

    try:
        message = await auth_service.reset_password(
            client_context(), username, email, new_password
        )
    except ApiError as e:
        logger.warning("Password reset failed for %s: %s", username, e.message)
        flash(e.message, "error")
        return render_template("auth/reset_password.html", username=username, email=email), 400

    flash(message, "success")
    return redirect(url_for("auth.login"))
