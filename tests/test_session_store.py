# tests/test_session_store.py
from datetime import datetime, timedelta

from pymongo.errors import ServerSelectionTimeoutError

import db
from config import SESSION_COOKIE_NAME, SESSION_MAX_AGE
from conftest import login, signup


def _session_cookie(resp):
    for header in resp.headers.getlist("Set-Cookie"):
        if header.startswith(SESSION_COOKIE_NAME + "="):
            return header
    return None


def test_first_response_sets_http_only_cookie_with_seven_day_max_age(client):
    resp = client.get("/listings")
    cookie = _session_cookie(resp)
    assert cookie is not None
    assert "HttpOnly" in cookie
    assert f"Max-Age={SESSION_MAX_AGE}" in cookie
    assert SESSION_MAX_AGE == 7 * 24 * 60 * 60


def test_session_document_is_persisted_with_expiry(client):
    before = datetime.utcnow()
    client.get("/listings")
    docs = list(db.sessions.find({}))
    assert len(docs) == 1
    expires = docs[0]["expires"]
    assert before + timedelta(days=7) - timedelta(seconds=5) <= expires
    assert expires <= datetime.utcnow() + timedelta(days=7)


def test_cookie_carries_only_a_signed_session_id(client):
    signup(client, "dave", password="pw-dave")
    cookie_value = client.get_cookie(SESSION_COOKIE_NAME).value
    assert "dave" not in cookie_value
    sid = cookie_value.rsplit(".", 1)[0]
    assert db.sessions.find_one({"_id": sid}) is not None


def test_unmodified_session_is_touched_at_most_daily(client):
    client.get("/listings")
    doc = db.sessions.find_one({})
    first_modified = doc["last_modified"]

    resp = client.get("/listings")
    assert _session_cookie(resp) is None
    assert db.sessions.find_one({})["last_modified"] == first_modified

    stale = datetime.utcnow() - timedelta(hours=25)
    db.sessions.update_one({"_id": doc["_id"]}, {"$set": {"last_modified": stale}})

    resp = client.get("/listings")
    touched = db.sessions.find_one({})
    assert touched["last_modified"] > stale + timedelta(hours=24)
    assert touched["expires"] > datetime.utcnow() + timedelta(days=6)
    assert _session_cookie(resp) is not None


def test_tampered_cookie_starts_a_fresh_session(client):
    client.get("/listings")
    original = client.get_cookie(SESSION_COOKIE_NAME).value

    client.set_cookie(SESSION_COOKIE_NAME, original[:-2] + "xx")
    resp = client.get("/listings")
    fresh = _session_cookie(resp)
    assert fresh is not None
    assert original not in fresh
    assert db.sessions.count_documents({}) == 2


def test_expired_session_is_not_restored(client):
    signup(client, "erin", password="pw-erin")
    assert b'id="curr-user">erin<' in client.get("/listings").data

    db.sessions.update_many({}, {"$set": {"expires": datetime.utcnow() - timedelta(seconds=1)}})
    assert b'id="curr-user"' not in client.get("/listings").data


def test_login_survives_across_requests_until_logout(client):
    signup(client, "frank", password="pw-frank")
    client.get("/logout")
    assert b'id="curr-user"' not in client.get("/listings").data

    login(client, "frank", "pw-frank")
    assert b'id="curr-user">frank<' in client.get("/listings").data
    assert b'id="curr-user">frank<' in client.get("/listings").data

    client.get("/logout")
    assert b'id="curr-user"' not in client.get("/listings").data


def test_static_requests_do_not_create_sessions(client):
    resp = client.get("/css/style.css")
    assert _session_cookie(resp) is None
    assert db.sessions.count_documents({}) == 0


def test_session_read_failure_renders_500(client, monkeypatch, caplog):
    signup(client, "zed", password="pw-zed")

    def broken_find_one(*args, **kwargs):
        raise ServerSelectionTimeoutError("mongo is down")

    monkeypatch.setattr(db.sessions, "find_one", broken_find_one)
    resp = client.get("/listings")
    assert resp.status_code == 500
    assert b"Something went wrong" in resp.data
    assert b'id="curr-user"' not in resp.data
    assert "session store error on read" in caplog.text


def test_session_write_failure_renders_500(app, monkeypatch, caplog):
    app.config["PROPAGATE_EXCEPTIONS"] = False

    def broken_replace_one(*args, **kwargs):
        raise ServerSelectionTimeoutError("mongo is down")

    monkeypatch.setattr(db.sessions, "replace_one", broken_replace_one)
    resp = app.test_client().get("/listings")
    assert resp.status_code == 500
    assert b"Something went wrong" in resp.data
    assert "session store error on write" in caplog.text


def test_signup_issues_a_new_session_id(app, client):
    client.get("/listings")
    planted = client.get_cookie(SESSION_COOKIE_NAME).value

    signup(client, "ivy", password="pw-ivy")
    assert client.get_cookie(SESSION_COOKIE_NAME).value != planted
    assert db.sessions.find_one({"_id": planted.rsplit(".", 1)[0]}) is None

    other = app.test_client()
    other.set_cookie(SESSION_COOKIE_NAME, planted)
    assert b'id="curr-user"' not in other.get("/listings").data


def test_login_issues_a_new_session_id(client):
    signup(client, "jay", password="pw-jay")
    client.get("/logout")
    before = client.get_cookie(SESSION_COOKIE_NAME).value

    login(client, "jay", "pw-jay")
    after = client.get_cookie(SESSION_COOKIE_NAME).value
    assert after != before
    assert db.sessions.find_one({"_id": before.rsplit(".", 1)[0]}) is None
    assert b'id="curr-user">jay<' in client.get("/listings").data
