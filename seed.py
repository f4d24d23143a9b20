"""Reset listings/reviews and load sample listings for local development.

    python seed.py [owner_username]

The owner is created (password "wanderlust") if it does not exist yet.
"""

import logging
import sys
from datetime import datetime

from auth import authenticator
from db import ensure_indexes, listings, reviews, users
from schemas import DEFAULT_IMAGE_FILENAME

logger = logging.getLogger(__name__)

DEFAULT_OWNER = "demo"
DEFAULT_OWNER_PASSWORD = "wanderlust"

SAMPLE_LISTINGS = [
    {
        "title": "Cozy Beachfront Cottage",
        "description": "Escape to this charming beachfront cottage for a relaxing getaway. Enjoy stunning ocean views and easy access to the beach.",
        "image": "https://images.unsplash.com/photo-1552733407-5d5c46c3bb3b?auto=format&fit=crop&w=800&q=60",
        "price": 1500,
        "location": "Malibu",
        "country": "United States",
    },
    {
        "title": "Modern Loft in Downtown",
        "description": "Stay in the heart of the city in this stylish loft apartment. Perfect for urban explorers!",
        "image": "https://images.unsplash.com/photo-1501785888041-af3ef285b470?auto=format&fit=crop&w=800&q=60",
        "price": 1200,
        "location": "New York City",
        "country": "United States",
    },
    {
        "title": "Mountain Retreat",
        "description": "Unplug and unwind in this peaceful mountain cabin. Surrounded by nature, it's a perfect place to recharge.",
        "image": "https://images.unsplash.com/photo-1571896349842-33c89424de2d?auto=format&fit=crop&w=800&q=60",
        "price": 1000,
        "location": "Aspen",
        "country": "United States",
    },
    {
        "title": "Historic Villa in Tuscany",
        "description": "Experience the charm of Tuscany in this beautifully restored villa. Explore the rolling hills and vineyards.",
        "image": "https://images.unsplash.com/photo-1566073771259-6a8506099945?auto=format&fit=crop&w=800&q=60",
        "price": 2500,
        "location": "Florence",
        "country": "Italy",
    },
    {
        "title": "Heritage Haveli Stay",
        "description": "Live like royalty in a restored haveli with painted courtyards, a short walk from the old city bazaars.",
        "image": "https://images.unsplash.com/photo-1599661046289-e31897846e41?auto=format&fit=crop&w=800&q=60",
        "price": 2000,
        "location": "Jaipur",
        "country": "India",
    },
]


def get_or_create_owner(username: str):
    doc = users.find_one({"username": username}, {"_id": 1})
    if doc:
        return doc["_id"]
    user = authenticator.register(username, f"{username}@example.com", DEFAULT_OWNER_PASSWORD)
    logger.info("Created owner %s", username)
    return user.object_id


def seed(owner_username: str = DEFAULT_OWNER) -> int:
    ensure_indexes()
    owner_id = get_or_create_owner(owner_username)

    reviews.delete_many({})
    listings.delete_many({})

    now = datetime.utcnow()
    docs = []
    for item in SAMPLE_LISTINGS:
        doc = dict(item)
        doc["image"] = {"url": item["image"], "filename": DEFAULT_IMAGE_FILENAME}
        doc.update({"owner": owner_id, "reviews": [], "created_at": now})
        docs.append(doc)

    result = listings.insert_many(docs)
    logger.info("Seeded %d listing(s) owned by %s", len(result.inserted_ids), owner_username)
    return len(result.inserted_ids)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    seed(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_OWNER)
