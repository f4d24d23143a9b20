"""WSGI middleware letting HTML forms issue PUT/PATCH/DELETE.

A POST carrying ``_method=DELETE`` (in the query string, or as a field of a
url-encoded form body) is routed as DELETE. The override has to happen at the
WSGI layer because Flask matches the URL rule before any request hook runs.

Form bodies larger than ``max_form_bytes`` are never buffered here; only the
query string can override them.
"""

import io
import logging
from urllib.parse import parse_qs

logger = logging.getLogger(__name__)

OVERRIDABLE_METHODS = frozenset(["PUT", "PATCH", "DELETE"])
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
MAX_FORM_BYTES = 64 * 1024


class MethodOverrideMiddleware:
    def __init__(self, app, param: str = "_method", max_form_bytes: int = MAX_FORM_BYTES):
        self.app = app
        self.param = param
        self.max_form_bytes = max_form_bytes

    def _from_query(self, environ):
        values = parse_qs(environ.get("QUERY_STRING", ""))
        return (values.get(self.param) or [None])[0]

    def _from_form(self, environ):
        if not environ.get("CONTENT_TYPE", "").startswith(FORM_CONTENT_TYPE):
            return None
        try:
            length = int(environ.get("CONTENT_LENGTH") or 0)
        except ValueError:
            return None
        if length <= 0 or length > self.max_form_bytes:
            return None

        body = environ["wsgi.input"].read(length)
        # Put the body back so Flask can still parse request.form.
        environ["wsgi.input"] = io.BytesIO(body)
        values = parse_qs(body.decode("utf-8", "replace"))
        return (values.get(self.param) or [None])[0]

    def __call__(self, environ, start_response):
        if environ.get("REQUEST_METHOD", "").upper() == "POST":
            method = self._from_query(environ) or self._from_form(environ)
            method = (method or "").strip().upper()
            if method in OVERRIDABLE_METHODS:
                environ["methodoverride.original_method"] = "POST"
                environ["REQUEST_METHOD"] = method
            elif method:
                logger.debug("Ignoring unsupported method override %r", method)
        return self.app(environ, start_response)
