# bookstream/core/errors.py
# Domain error taxonomy
#
# Services raise these; main.py maps them to JSON responses of the form
# {"message": ...}. Endpoints never catch them.

from typing import Any, Dict, Optional


class BookStreamError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class InputError(BookStreamError):
    """Missing or invalid file / fields."""
    status_code = 400


class FileTooLargeError(InputError):
    status_code = 413


class AuthError(BookStreamError):
    status_code = 401


class NotFoundError(BookStreamError):
    status_code = 404


class ConflictError(BookStreamError):
    """
    Raised when an upload matches an existing book.
    Carries the existing record's public fields for client-side reconciliation.
    """
    status_code = 409

    def __init__(self, message: str, existing_book: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.existing_book = existing_book or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "existing_book": self.existing_book}


class StorageUploadError(BookStreamError):
    """Storage backend rejected or failed an upload."""
    status_code = 500


class StorageDeleteError(BookStreamError):
    """Storage backend rejected or failed a delete."""
    status_code = 500
