import os

from dotenv import load_dotenv

# Environment
APP_ENV = os.getenv("APP_ENV", "development")
if APP_ENV != "production":
    load_dotenv()

DEBUG = os.getenv("DEBUG", "0") == "1"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))

# Mongo
ATLASDB_URL = os.getenv("ATLASDB_URL", "mongodb://127.0.0.1:27017/wanderlust")
# Empty: use the database named in ATLASDB_URL (or "wanderlust").
MONGO_DB = os.getenv("MONGO_DB")
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))

# Sessions
DEFAULT_SECRET = "fallbackSecret"
SECRET = os.getenv("SECRET") or DEFAULT_SECRET
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "wanderlust.sid")
SESSION_MAX_AGE = 7 * 24 * 60 * 60  # seconds
SESSION_TOUCH_AFTER = 24 * 60 * 60  # seconds
