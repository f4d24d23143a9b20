"""Signup / login / logout pages."""

from __future__ import annotations

import logging

from flask import Blueprint, flash, redirect, render_template, request, session, url_for
from flask_login import login_user, logout_user

from auth import MSG_BAD_CREDENTIALS, authenticator
from errors import AuthError

logger = logging.getLogger(__name__)

users_views = Blueprint("users", __name__)


@users_views.get("/signup")
def signup_form():
    return render_template("users/signup.html")


@users_views.post("/signup")
def signup():
    form = request.form
    try:
        user = authenticator.register(
            form.get("username"),
            form.get("email"),
            form.get("password"),
        )
    except AuthError as e:
        flash(e.message, "error")
        return redirect(url_for("users.signup_form"))

    logger.info("Registered user %s", user.username)
    session.regenerate()
    login_user(user)
    flash("Welcome to Wanderlust!", "success")
    return redirect(url_for("listings.index"))


@users_views.get("/login")
def login_form():
    return render_template("users/login.html")


@users_views.post("/login")
def login():
    user = authenticator.authenticate(request.form.get("username"), request.form.get("password"))
    if not user:
        flash(MSG_BAD_CREDENTIALS, "error")
        return redirect(url_for("users.login_form"))

    redirect_url = session.pop("redirect_url", None) or url_for("listings.index")
    # new session id on login, so a planted id never becomes authenticated
    session.regenerate()
    login_user(user)
    flash("Welcome back to Wanderlust!", "success")
    return redirect(redirect_url)


@users_views.get("/logout")
def logout():
    logout_user()
    flash("You are logged out!", "success")
    return redirect(url_for("listings.index"))
