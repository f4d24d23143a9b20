import logging
from urllib.parse import urlparse

from pymongo import MongoClient, ASCENDING
from pymongo.errors import PyMongoError

from config import ATLASDB_URL, MONGO_DB, MONGO_TIMEOUT_MS

logger = logging.getLogger(__name__)

# -----------------------------
# Mongo Connection
# -----------------------------
client = MongoClient(ATLASDB_URL, serverSelectionTimeoutMS=MONGO_TIMEOUT_MS)
db = client[MONGO_DB] if MONGO_DB else client.get_default_database("wanderlust")

# -----------------------------
# Collections (exported)
# -----------------------------
users = db["users"]
listings = db["listings"]
reviews = db["reviews"]
sessions = db["sessions"]


def _find_index_by_keys(col, keys):
    """
    keys: list of tuples e.g. [("username", 1)]
    returns (index_name, meta) if an index exists with exactly these keys; else (None, None)
    """
    info = col.index_information()
    for name, meta in info.items():
        if [tuple(k) for k in meta.get("key") or []] == keys:
            return name, meta
    return None, None


def _ensure_index(col, keys, unique=False, sparse=False, expire_after=None):
    """
    Ensures an index exists with the given keys and options.
    - If exists with same keys + same options => do nothing
    - If exists with same keys but different options => drop & recreate
    - Otherwise create
    """
    existing_name, meta = _find_index_by_keys(col, keys)
    if existing_name:
        same = (
            bool(meta.get("unique", False)) == bool(unique)
            and bool(meta.get("sparse", False)) == bool(sparse)
            and meta.get("expireAfterSeconds") == expire_after
        )
        if same:
            return
        col.drop_index(existing_name)

    options = {"unique": unique, "sparse": sparse}
    if expire_after is not None:
        options["expireAfterSeconds"] = expire_after
    col.create_index(keys, **options)


def ensure_indexes():
    """
    Indexes needed for login, listing pages and the session store.
    Safe to call multiple times.
    """

    # ---------- Users ----------
    _ensure_index(users, [("username", ASCENDING)], unique=True)

    # ---------- Listings ----------
    _ensure_index(listings, [("owner", ASCENDING)])

    # ---------- Sessions ----------
    # TTL: Mongo removes a session document once `expires` is in the past.
    _ensure_index(sessions, [("expires", ASCENDING)], expire_after=0)


def _redact(url: str) -> str:
    parsed = urlparse(url)
    if parsed.password:
        return url.replace(f":{parsed.password}@", ":****@", 1)
    return url


def connect_db() -> bool:
    """Single startup connection attempt.

    Failure is logged and swallowed: the app keeps serving requests and every
    database touch fails on its own until Mongo becomes reachable.
    """
    try:
        client.admin.command("ping")
        ensure_indexes()
    except PyMongoError as e:
        logger.error("MongoDB connection error (%s): %s", _redact(ATLASDB_URL), e)
        return False

    logger.info("Connected to MongoDB: %s", _redact(ATLASDB_URL))
    return True
