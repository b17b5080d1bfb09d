"""
Console error taxonomy.

Every error is terminal for the current user action only. Nothing is retried
and nothing needs rolling back, because no local state is kept until the
upstream service confirms a write.
"""
from typing import Optional


class ConsoleError(Exception):
    """Base class; ``message`` is what the user sees in the notification."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ConsoleError):
    """Client-side rejection: user corrects the input and retries."""

    status_code = 400


class NetworkError(ConsoleError):
    """Any failed call to the upstream transport service."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class ReceiptError(ConsoleError):
    """A receipt could not be produced (no transactions for the slip, missing student)."""

    status_code = 404


class LoginRequired(ConsoleError):
    status_code = 401

    def __init__(self, message: str = "Please login to continue", login_url: str = "/auth/login"):
        super().__init__(message)
        self.login_url = login_url
