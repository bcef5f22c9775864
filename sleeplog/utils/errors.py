"""
Error types raised by the sleep log services.

Each error carries an HTTP-style status code and a machine code so the
request layer can map it without inspecting messages.
"""

from typing import Dict


class SleepLogError(Exception):
    """Base error for sleep log operations."""

    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal Server Error"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> Dict[str, str]:
        return {"message": self.message, "code": self.code}


class NotFoundError(SleepLogError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not Found"


class ValidationError(SleepLogError):
    status_code = 400
    code = "BAD_REQUEST"
    default_message = "Bad Request"


class PersistenceError(SleepLogError):
    """A transaction failed and was rolled back."""

    status_code = 500
    code = "PERSISTENCE_ERROR"
    default_message = "Failed to persist changes"
