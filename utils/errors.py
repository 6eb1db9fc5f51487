"""
Error kinds raised by the saved search layer

Each error carries a machine-readable code, the HTTP status an outer
request handler should map it to, and (for input errors) the offending
property name.
"""

from typing import Optional


class SavedSearchError(Exception):
    code = "ERROR"
    status = 500

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        """Structured error in the shape returned by the tool surface."""
        err = {"error": True, "code": self.code, "message": self.message}
        if self.field is not None:
            err["field"] = self.field
        return err


class InvalidInputError(SavedSearchError):
    code = "INVALID_INPUT"
    status = 400


class FieldTooLongError(SavedSearchError):
    code = "FIELD_TOO_LONG"
    status = 413


class NotFoundError(SavedSearchError):
    code = "NOT_FOUND"
    status = 404


class LibraryNotFoundError(NotFoundError):
    pass


class VersionConflictError(SavedSearchError):
    code = "PRECONDITION_FAILED"
    status = 412


class PreconditionRequiredError(SavedSearchError):
    code = "PRECONDITION_REQUIRED"
    status = 428


class ShardNotFoundError(SavedSearchError):
    code = "SHARD_NOT_FOUND"
