"""
Error taxonomy shared by the repository, HTTP layer and client.

Every error carries the HTTP status it is surfaced with.
"""

from typing import List, Optional


class AppError(Exception):
    """Base error translated to a JSON `{"message": ...}` response."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"message": self.message}


class NotFoundError(AppError):
    """Referenced identifier does not exist."""

    status_code = 404


class ValidationError(AppError):
    """Malformed or missing required input."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class PayloadTooLargeError(ValidationError):
    """Uploaded file exceeds the configured size limit."""

    status_code = 413
