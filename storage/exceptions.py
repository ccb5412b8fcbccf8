"""Errors raised when talking to the transaction store.

All exceptions inherit from StoreError so the dashboard can catch one type
and turn it into an error state.
"""


class StoreError(Exception):
    """Base class for transaction store failures."""

    pass


class TransportError(StoreError):
    """Raised when the store cannot be reached or answers with a non-2xx status.

    Covers connection errors, timeouts and HTTP error responses. No retry is
    attempted.
    """

    pass


class StoreResponseError(StoreError):
    """Raised when the store answers with an envelope whose status is not "success"."""

    def __init__(self, status, message: str = ""):
        self.status = status
        super().__init__(message or f"Store responded with status {status!r}")
