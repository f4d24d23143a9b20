from __future__ import annotations

from datetime import datetime

from flask import Blueprint, flash, g, redirect, request, url_for
from flask_login import current_user

from auth import to_object_id
from db import listings, reviews
from middleware import MSG_LISTING_MISSING, require_login, require_review_author
from schemas import nested_form, validate_review

reviews_views = Blueprint("reviews", __name__, url_prefix="/listings/<listing_id>/reviews")


@reviews_views.post("/")
@reviews_views.post("")
@require_login()
def create(listing_id):
    oid = to_object_id(listing_id)
    listing = listings.find_one({"_id": oid}, {"_id": 1}) if oid else None
    if not listing:
        flash(MSG_LISTING_MISSING, "error")
        return redirect(url_for("listings.index"))

    doc = validate_review(nested_form(request.form, "review"))
    doc.update({"author": current_user.object_id, "created_at": datetime.utcnow()})
    review_id = reviews.insert_one(doc).inserted_id
    listings.update_one({"_id": listing["_id"]}, {"$push": {"reviews": review_id}})

    flash("New Review Created!", "success")
    return redirect(url_for("listings.show", listing_id=listing_id))


@reviews_views.delete("/<review_id>")
@require_login()
@require_review_author()
def destroy(listing_id, review_id):
    review_oid = g.review["_id"]
    listings.update_one({"_id": to_object_id(listing_id)}, {"$pull": {"reviews": review_oid}})
    reviews.delete_one({"_id": review_oid})

    flash("Review Deleted!", "success")
    return redirect(url_for("listings.show", listing_id=listing_id))
