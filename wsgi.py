"""WSGI entrypoint for production servers like Gunicorn."""

from app import create_app
from db import connect_db

app = create_app()

# One connection attempt at startup; failures are logged and the app still serves.
connect_db()
