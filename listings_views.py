"""Listing pages: index, show, and owner-only create/edit/delete."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from flask import Blueprint, flash, g, redirect, render_template, request, url_for
from flask_login import current_user

from auth import to_object_id
from db import listings, reviews, users
from middleware import MSG_LISTING_MISSING, require_listing_owner, require_login
from schemas import nested_form, validate_listing

logger = logging.getLogger(__name__)

listings_views = Blueprint("listings", __name__, url_prefix="/listings")


def _public_user(user_id) -> Optional[Dict[str, Any]]:
    if user_id is None:
        return None
    u = users.find_one({"_id": user_id}, {"username": 1, "email": 1})
    if not u:
        return None
    return {"_id": str(u["_id"]), "username": u.get("username"), "email": u.get("email")}


def _populate_reviews(review_ids: List[Any]) -> List[Dict[str, Any]]:
    if not review_ids:
        return []
    docs = {r["_id"]: r for r in reviews.find({"_id": {"$in": list(review_ids)}})}
    out = []
    # keep the order reviews were attached in
    for rid in review_ids:
        r = docs.get(rid)
        if not r:
            continue
        out.append({
            "_id": str(r["_id"]),
            "comment": r.get("comment"),
            "rating": r.get("rating"),
            "created_at": r.get("created_at"),
            "author": _public_user(r.get("author")),
        })
    return out


def _present(listing: Dict[str, Any], populate: bool = False) -> Dict[str, Any]:
    out = dict(listing)
    out["_id"] = str(listing["_id"])
    out["image"] = listing.get("image") or {}
    if populate:
        out["owner"] = _public_user(listing.get("owner"))
        out["reviews"] = _populate_reviews(listing.get("reviews") or [])
    return out


@listings_views.get("/")
@listings_views.get("")
def index():
    all_listings = [_present(doc) for doc in listings.find({}).sort("created_at", -1)]
    return render_template("listings/index.html", all_listings=all_listings)


@listings_views.get("/new")
@require_login()
def new():
    return render_template("listings/new.html")


@listings_views.post("/")
@listings_views.post("")
@require_login()
def create():
    doc = validate_listing(nested_form(request.form, "listing"))
    doc.update({
        "owner": current_user.object_id,
        "reviews": [],
        "created_at": datetime.utcnow(),
    })
    listing_id = listings.insert_one(doc).inserted_id
    logger.info("Listing %s created by %s", listing_id, current_user.username)
    flash("New Listing Created!", "success")
    return redirect(url_for("listings.index"))


@listings_views.get("/<listing_id>")
def show(listing_id):
    oid = to_object_id(listing_id)
    listing = listings.find_one({"_id": oid}) if oid else None
    if not listing:
        flash(MSG_LISTING_MISSING, "error")
        return redirect(url_for("listings.index"))
    return render_template("listings/show.html", listing=_present(listing, populate=True))


@listings_views.get("/<listing_id>/edit")
@require_login()
@require_listing_owner()
def edit(listing_id):
    listing = _present(g.listing)
    # smaller preview on the edit form
    original_image_url = (listing["image"].get("url") or "").replace("w=1170", "w=250")
    return render_template("listings/edit.html", listing=listing, original_image_url=original_image_url)


@listings_views.put("/<listing_id>")
@require_login()
@require_listing_owner()
def update(listing_id):
    data = nested_form(request.form, "listing")
    fields = validate_listing(data)
    if not (data.get("image") or "").strip():
        # an empty image field keeps the current picture
        fields["image"] = g.listing.get("image") or fields["image"]
    listings.update_one({"_id": g.listing["_id"]}, {"$set": fields})
    flash("Listing Updated!", "success")
    return redirect(url_for("listings.show", listing_id=listing_id))


@listings_views.delete("/<listing_id>")
@require_login()
@require_listing_owner()
def destroy(listing_id):
    listing = g.listing
    review_ids = listing.get("reviews") or []
    listings.delete_one({"_id": listing["_id"]})
    if review_ids:
        reviews.delete_many({"_id": {"$in": review_ids}})
    logger.info("Listing %s deleted with %d review(s)", listing["_id"], len(review_ids))
    flash("Listing Deleted!", "success")
    return redirect(url_for("listings.index"))
