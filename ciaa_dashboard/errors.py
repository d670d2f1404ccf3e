"""Error taxonomy for backend calls.

A 404 is not an error: the client returns the ``NOT_FOUND`` sentinel and
callers treat it as "no data available".
"""

from __future__ import annotations


class _NotFound:
    """Sentinel returned for HTTP 404 responses."""

    _instance: _NotFound | None = None

    def __new__(cls) -> _NotFound:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


def is_not_found(value: object) -> bool:
    return value is NOT_FOUND


class ApiError(Exception):
    """Non-2xx, non-404 response from the backend."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkError(ApiError):
    """The backend could not be reached at all."""

    def __init__(self, message: str = "network error"):
        super().__init__(message, status_code=None)
