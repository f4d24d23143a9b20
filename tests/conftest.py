# tests/conftest.py
import os
import sys

import mongomock
import pymongo
import pytest

# get the project root (the folder that has app.py and db.py)
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

os.environ["APP_ENV"] = "production"  # don't pick up a developer's .env
os.environ.setdefault("SECRET", "test-secret")

# db.py builds its client at import time; make that an in-memory mongomock client.
pymongo.MongoClient = mongomock.MongoClient

import db  # noqa: E402
from app import create_app  # noqa: E402


@pytest.fixture(autouse=True)
def clean_db():
    for col in (db.users, db.listings, db.reviews, db.sessions):
        col.delete_many({})
    db.ensure_indexes()
    yield


@pytest.fixture
def app():
    flask_app = create_app()
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def signup(client, username="alice", password="secret123", email=None):
    return client.post("/signup", data={
        "username": username,
        "email": email or f"{username}@example.com",
        "password": password,
    })


def login(client, username="alice", password="secret123"):
    return client.post("/login", data={"username": username, "password": password})


def listing_form(**overrides):
    data = {
        "listing[title]": "Cozy Cabin",
        "listing[description]": "Quiet place in the woods",
        "listing[image]": "",
        "listing[price]": "1200",
        "listing[location]": "Manali",
        "listing[country]": "India",
    }
    data.update({f"listing[{k}]": v for k, v in overrides.items()})
    return data


@pytest.fixture
def logged_in(client):
    signup(client)
    return client


@pytest.fixture
def make_listing(logged_in):
    def _make(**overrides):
        logged_in.post("/listings", data=listing_form(**overrides))
        return db.listings.find_one({}, sort=[("created_at", -1)])
    return _make
