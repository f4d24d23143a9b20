DEFAULT_STATUS = 500
DEFAULT_MESSAGE = "Something went wrong"


class AppError(Exception):
    """Error carrying the HTTP status and message shown on the error page."""

    def __init__(self, status: int = DEFAULT_STATUS, message: str = DEFAULT_MESSAGE):
        super().__init__(message)
        self.status = status
        self.message = message


class AuthError(AppError):
    def __init__(self, message: str):
        super().__init__(400, message)


def status_and_message(e: BaseException):
    """Reads `status`/`message` off any error, falling back to 500 / generic text."""
    status = getattr(e, "status", None) or DEFAULT_STATUS
    message = getattr(e, "message", None) or DEFAULT_MESSAGE
    return int(status), str(message)
