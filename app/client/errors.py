"""
Errors raised by the client transport layer.

UI-facing client operations catch these and return result objects instead.
"""
from typing import Optional


class RemoteServiceError(Exception):
    """Network failure or an error response from the API"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(RemoteServiceError):
    """The API answered 404"""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, status_code=404)
