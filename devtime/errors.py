"""Domain errors raised by the ingestion and aggregation core.

Each error is scoped to a single call; the HTTP layer maps them to status
codes in ``main.py``.
"""


class DevtimeError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class AuthenticationError(DevtimeError):
    """Unknown or missing API token, or no session user."""

    status_code = 401

    def __init__(self, message: str = "Invalid Token"):
        super().__init__(message)


class ValidationError(DevtimeError):
    """A batch item is missing a required field or has a malformed one."""

    status_code = 422

    def __init__(self, message: str, index: int | None = None, errors: list | None = None):
        super().__init__(message)
        self.index = index
        self.errors = errors or []


class NotFoundError(DevtimeError):
    status_code = 404

    def __init__(self, message: str = "Project not found"):
        super().__init__(message)


class StoreError(DevtimeError):
    """Infrastructure failure from the store. Never retried here."""

    status_code = 503
