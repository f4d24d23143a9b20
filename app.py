import logging
import os

from flask import Flask, g, get_flashed_messages, redirect, render_template, request, session, url_for
from flask_login import current_user
from werkzeug.exceptions import HTTPException, InternalServerError, MethodNotAllowed, NotFound

from config import (
    DEBUG,
    DEFAULT_SECRET,
    HOST,
    LOG_LEVEL,
    PORT,
    SECRET,
    SESSION_COOKIE_NAME,
    SESSION_MAX_AGE,
    SESSION_TOUCH_AFTER,
)
from auth import login_manager
from db import connect_db, sessions
from errors import AppError, status_and_message
from method_override import MethodOverrideMiddleware
from session_store import MongoSessionInterface

from listings_views import listings_views as listings_bp
from reviews_views import reviews_views as reviews_bp
from users_views import users_views as users_bp

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

NOT_FOUND_MESSAGE = "Page Not Found"


def create_app():
    app = Flask(
        __name__,
        template_folder=os.path.join(BASE_DIR, "views"),
        static_folder=os.path.join(BASE_DIR, "public"),
        static_url_path="",
    )
    app.config.update(
        SECRET_KEY=SECRET,
        SESSION_COOKIE_NAME=SESSION_COOKIE_NAME,
        SESSION_COOKIE_HTTPONLY=True,
    )
    if SECRET == DEFAULT_SECRET:
        logger.warning("SECRET is not set; session cookies are signed with the built-in fallback secret")

    # -----------------------------
    # Middleware (order matters)
    # -----------------------------
    app.wsgi_app = MethodOverrideMiddleware(app.wsgi_app)
    app.session_interface = MongoSessionInterface(
        sessions,
        max_age=SESSION_MAX_AGE,
        touch_after=SESSION_TOUCH_AFTER,
    )
    login_manager.init_app(app)

    @app.before_request
    def check_session_store():
        error = getattr(session, "store_error", None)
        if error is not None and request.endpoint != "static":
            raise AppError() from error

    @app.before_request
    def load_template_locals():
        # Drains the flash queue now; anything flashed during this request
        # shows up on the next page.
        g.success = get_flashed_messages(category_filter=["success"])
        g.error = get_flashed_messages(category_filter=["error"])
        g.curr_user = current_user._get_current_object() if current_user.is_authenticated else None

    @app.context_processor
    def inject_locals():
        return {
            "success": g.get("success", []),
            "error": g.get("error", []),
            "currUser": g.get("curr_user"),
        }

    # -----------------------------
    # Register Blueprints
    # -----------------------------
    app.register_blueprint(users_bp)
    app.register_blueprint(listings_bp)
    app.register_blueprint(reviews_bp)

    @app.get("/")
    def root():
        return redirect(url_for("listings.index"))

    # -----------------------------
    # 404 & Error Handling
    # -----------------------------
    @app.errorhandler(Exception)
    def handle_error(e):
        if isinstance(e, (NotFound, MethodNotAllowed)):
            status, message = 404, NOT_FOUND_MESSAGE
        elif isinstance(e, InternalServerError) and e.original_exception is not None:
            # failures outside the view (e.g. saving the session)
            status, message = status_and_message(e.original_exception)
        elif isinstance(e, HTTPException):
            status, message = e.code or 500, e.description
        else:
            status, message = status_and_message(e)
            if status >= 500:
                logger.error("Unhandled error: %s", e, exc_info=e)
        return render_template("error.html", message=message, status=status), status

    return app


if __name__ == "__main__":
    app = create_app()
    connect_db()
    logger.info("Server running on http://localhost:%s", PORT)
    app.run(host=HOST, port=PORT, debug=DEBUG)
