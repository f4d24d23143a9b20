"""Form parsing + validation for listings and reviews.

Forms post nested keys (``listing[title]``, ``review[rating]``); these are
collected into plain dicts and checked before anything touches Mongo.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from errors import AppError

DEFAULT_IMAGE_URL = (
    "https://images.unsplash.com/photo-1625505826533-5c80aca7d157"
    "?ixlib=rb-4.0.3&auto=format&fit=crop&w=1170&q=80"
)
DEFAULT_IMAGE_FILENAME = "listingimage"

LISTING_TEXT_FIELDS = ("title", "description", "location", "country")


def nested_form(form, prefix: str) -> Optional[Dict[str, str]]:
    """Collect ``prefix[key]`` fields. Returns None if the form has none."""
    start = prefix + "["
    out = {}
    for key in form.keys():
        if key.startswith(start) and key.endswith("]"):
            out[key[len(start):-1]] = form.get(key)
    return out or None


def _parse_number(raw) -> Optional[float]:
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return int(value) if value.is_integer() else value


def _is_web_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _fail(errors: List[str]):
    raise AppError(400, ", ".join(errors))


def validate_listing(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Returns the listing fields ready to store, or raises AppError(400)."""
    if data is None:
        _fail(['"listing" is required'])

    errors = []
    clean: Dict[str, Any] = {}

    for field in LISTING_TEXT_FIELDS:
        value = (data.get(field) or "").strip()
        if not value:
            errors.append(f'"listing.{field}" is required')
        clean[field] = value

    raw_price = data.get("price")
    if raw_price is None or str(raw_price).strip() == "":
        errors.append('"listing.price" is required')
    else:
        price = _parse_number(raw_price)
        if price is None:
            errors.append('"listing.price" must be a number')
        elif price < 0:
            errors.append('"listing.price" must be greater than or equal to 0')
        clean["price"] = price

    image_url = (data.get("image") or "").strip()
    if image_url and not _is_web_url(image_url):
        errors.append('"listing.image" must be a valid uri')
    clean["image"] = {
        "url": image_url or DEFAULT_IMAGE_URL,
        "filename": DEFAULT_IMAGE_FILENAME,
    }

    if errors:
        _fail(errors)
    return clean


def validate_review(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if data is None:
        _fail(['"review" is required'])

    errors = []
    clean: Dict[str, Any] = {}

    raw_rating = data.get("rating")
    rating = _parse_number(raw_rating) if raw_rating not in (None, "") else None
    if raw_rating in (None, ""):
        errors.append('"review.rating" is required')
    elif rating is None or not isinstance(rating, int):
        errors.append('"review.rating" must be an integer')
    elif rating < 1:
        errors.append('"review.rating" must be greater than or equal to 1')
    elif rating > 5:
        errors.append('"review.rating" must be less than or equal to 5')
    clean["rating"] = rating

    comment = (data.get("comment") or "").strip()
    if not comment:
        errors.append('"review.comment" is required')
    clean["comment"] = comment

    if errors:
        _fail(errors)
    return clean
