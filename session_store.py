"""Server-side Flask sessions persisted in MongoDB.

The cookie carries only the signed session id. Session data lives in the
`sessions` collection as::

    {"_id": sid, "session": {...}, "expires": datetime, "last_modified": datetime}

Modified (or brand new) sessions are written on every response. Unmodified
sessions are only "touched" (expiry pushed forward) once `touch_after` has
elapsed since the last write, so a busy session costs one write per day.

A failed read is kept on the session as `store_error`; the app raises it from
a request hook so it reaches the error page instead of degrading to anonymous.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta

from flask import request as current_request
from flask.sessions import SessionInterface, SessionMixin
from itsdangerous import BadSignature, Signer
from pymongo.errors import PyMongoError
from werkzeug.datastructures import CallbackDict

logger = logging.getLogger(__name__)


def new_sid() -> str:
    return secrets.token_urlsafe(32)


class MongoSession(CallbackDict, SessionMixin):
    def __init__(self, initial=None, sid=None, new=False, last_modified=None, store_error=None):
        def on_update(self):
            self.modified = True

        super().__init__(initial, on_update)
        self.sid = sid
        self.new = new
        self.modified = False
        self.last_modified = last_modified
        self.store_error = store_error
        self.previous_sid = None

    def regenerate(self):
        """Move the data to a fresh id; the old document is dropped on save."""
        if not self.new and self.previous_sid is None:
            self.previous_sid = self.sid
        self.sid = new_sid()
        self.new = True


class MongoSessionInterface(SessionInterface):
    salt = "wanderlust-session"

    def __init__(self, collection, max_age: int, touch_after: int):
        self.collection = collection
        self.max_age = timedelta(seconds=max_age)
        self.touch_after = timedelta(seconds=touch_after)

    def _signer(self, app):
        if not app.secret_key:
            return None
        return Signer(app.secret_key, salt=self.salt, key_derivation="hmac")

    def _unsign(self, signer, raw):
        if not raw:
            return None
        try:
            return signer.unsign(raw).decode("utf-8")
        except BadSignature:
            return None

    def open_session(self, app, request):
        signer = self._signer(app)
        if signer is None:
            return None

        sid = self._unsign(signer, request.cookies.get(self.get_cookie_name(app)))
        if sid:
            try:
                doc = self.collection.find_one({"_id": sid, "expires": {"$gt": datetime.utcnow()}})
            except PyMongoError as e:
                logger.error("Mongo session store error on read: %s", e)
                return MongoSession(sid=sid, store_error=e)
            if doc:
                return MongoSession(doc.get("session") or {}, sid=sid, last_modified=doc.get("last_modified"))

        return MongoSession(sid=new_sid(), new=True)

    def _needs_touch(self, session: MongoSession, now: datetime) -> bool:
        if session.last_modified is None:
            return True
        return now - session.last_modified >= self.touch_after

    def _write(self, session: MongoSession, now: datetime, expires: datetime) -> bool:
        if session.new or session.modified:
            if session.previous_sid:
                self.collection.delete_one({"_id": session.previous_sid})
            self.collection.replace_one(
                {"_id": session.sid},
                {"session": dict(session), "expires": expires, "last_modified": now},
                upsert=True,
            )
            return True
        if self._needs_touch(session, now):
            self.collection.update_one(
                {"_id": session.sid},
                {"$set": {"expires": expires, "last_modified": now}},
            )
            return True
        return False

    def save_session(self, app, session, response):
        # Static files are served ahead of the session layer.
        if current_request.endpoint == "static":
            return
        # Never overwrite a session we could not read.
        if session.store_error is not None:
            return

        now = datetime.utcnow()
        expires = now + self.max_age
        try:
            written = self._write(session, now, expires)
        except PyMongoError as e:
            logger.error("Mongo session store error on write: %s", e)
            raise
        if not written:
            return

        response.set_cookie(
            self.get_cookie_name(app),
            self._signer(app).sign(session.sid).decode("utf-8"),
            max_age=int(self.max_age.total_seconds()),
            expires=expires,
            httponly=self.get_cookie_httponly(app),
            domain=self.get_cookie_domain(app),
            path=self.get_cookie_path(app),
            secure=self.get_cookie_secure(app),
            samesite=self.get_cookie_samesite(app),
        )
