from datetime import datetime
import base64
import hashlib
import hmac
import os
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from flask_login import LoginManager, UserMixin
from pymongo.errors import DuplicateKeyError

from db import users
from errors import AuthError

DEFAULT_ITER = 210000

MSG_MISSING_USERNAME = "No username was given"
MSG_MISSING_PASSWORD = "No password was given"
MSG_MISSING_EMAIL = "No email was given"
MSG_USER_EXISTS = "A user with the given username is already registered"
MSG_BAD_CREDENTIALS = "Password or username is incorrect"


def _b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("utf-8")


def _b64d(s: str) -> bytes:
    return base64.b64decode((s or "").encode("utf-8"))


def hash_password(pw: str, iters: int = DEFAULT_ITER):
    """
    Returns (password_hash_b64, password_salt_b64, password_iter)
    """
    if pw is None:
        pw = ""
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", pw.encode("utf-8"), salt, int(iters), dklen=32)
    return _b64e(dk), _b64e(salt), int(iters)


def verify_password(pw: str, pw_hash_b64: str, pw_salt_b64: str, pw_iter: int) -> bool:
    if pw is None:
        pw = ""
    try:
        salt = _b64d(pw_salt_b64)
        iters = int(pw_iter or DEFAULT_ITER)
        expected = _b64d(pw_hash_b64)
    except (ValueError, TypeError):
        return False
    dk = hashlib.pbkdf2_hmac("sha256", pw.encode("utf-8"), salt, iters, dklen=32)
    return hmac.compare_digest(dk, expected)


class User(UserMixin):
    """Flask-Login view of a `users` document. Never carries the password hash."""

    def __init__(self, doc):
        self.id = str(doc["_id"])
        self.username = doc.get("username")
        self.email = doc.get("email")

    @property
    def object_id(self) -> ObjectId:
        return ObjectId(self.id)

    def __repr__(self):
        return f"<User {self.username}>"


def to_object_id(value) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value or "").strip())
    except (InvalidId, TypeError):
        return None


class UserAuthenticator:
    """Username/password strategy plus session (de)serialization for Flask-Login."""

    def __init__(self, collection):
        self.collection = collection

    def register(self, username: str, email: str, password: str) -> User:
        username = (username or "").strip()
        email = (email or "").strip()
        if not username:
            raise AuthError(MSG_MISSING_USERNAME)
        if not email:
            raise AuthError(MSG_MISSING_EMAIL)
        if not password:
            raise AuthError(MSG_MISSING_PASSWORD)
        if self.collection.find_one({"username": username}):
            raise AuthError(MSG_USER_EXISTS)

        pw_hash, pw_salt, pw_iter = hash_password(password)
        doc = {
            "username": username,
            "email": email,
            "hash": pw_hash,
            "salt": pw_salt,
            "iterations": pw_iter,
            "created_at": datetime.utcnow(),
        }
        try:
            doc["_id"] = self.collection.insert_one(doc).inserted_id
        except DuplicateKeyError:
            raise AuthError(MSG_USER_EXISTS)
        return User(doc)

    def authenticate(self, username: str, password: str) -> Optional[User]:
        username = (username or "").strip()
        if not username or not password:
            return None
        doc = self.collection.find_one({"username": username})
        if not doc:
            return None
        if not verify_password(password, doc.get("hash"), doc.get("salt"), doc.get("iterations")):
            return None
        return User(doc)

    def serialize(self, user: User) -> str:
        return user.get_id()

    def deserialize(self, user_id: str) -> Optional[User]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid}, {"hash": 0, "salt": 0})
        return User(doc) if doc else None


authenticator = UserAuthenticator(users)

login_manager = LoginManager()
# Flask-Login stores User.get_id() under `_user_id`; this turns it back into a User.
login_manager.user_loader(authenticator.deserialize)
