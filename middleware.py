"""Route guards for listing/review pages."""

from __future__ import annotations

from functools import wraps

from flask import flash, g, redirect, request, session, url_for
from flask_login import current_user

from auth import to_object_id
from db import listings, reviews

MSG_LOGIN_REQUIRED = "You must be logged in to create listing!"
MSG_LISTING_MISSING = "Listing you requested for does not exist!"
MSG_NOT_OWNER = "You are not the owner of this listing"
MSG_NOT_AUTHOR = "You are not the author of this review"


def require_login():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                # Only GETs can be replayed after login.
                if request.method == "GET":
                    session["redirect_url"] = request.full_path.rstrip("?")
                flash(MSG_LOGIN_REQUIRED, "error")
                return redirect(url_for("users.login_form"))
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def require_listing_owner():
    """Loads the listing into `g.listing`; only its owner gets through."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            listing_id = kwargs.get("listing_id")
            oid = to_object_id(listing_id)
            listing = listings.find_one({"_id": oid}) if oid else None
            if not listing:
                flash(MSG_LISTING_MISSING, "error")
                return redirect(url_for("listings.index"))

            if listing.get("owner") != current_user.object_id:
                flash(MSG_NOT_OWNER, "error")
                return redirect(url_for("listings.show", listing_id=listing_id))

            g.listing = listing
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def require_review_author():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            listing_id = kwargs.get("listing_id")
            listing_oid = to_object_id(listing_id)
            oid = to_object_id(kwargs.get("review_id"))
            review = reviews.find_one({"_id": oid}) if oid and listing_oid else None
            # the review must hang off the listing named in the URL
            if review and not listings.find_one({"_id": listing_oid, "reviews": oid}, {"_id": 1}):
                review = None
            if not review or review.get("author") != current_user.object_id:
                flash(MSG_NOT_AUTHOR, "error")
                return redirect(url_for("listings.show", listing_id=listing_id))

            g.review = review
            return fn(*args, **kwargs)
        return wrapper
    return decorator
