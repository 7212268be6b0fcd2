"""Service-layer errors shared by the courses and accounts apps.

Services raise these instead of HTTP exceptions; `api.exceptions` maps
them to responses. `code` is a stable machine-readable identifier.
"""
from __future__ import annotations


class ServiceError(Exception):
    code = "error"
    default_message = "Request could not be completed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(ServiceError):
    code = "validation_error"
    default_message = "Validation failed."

    def __init__(self, message: str | None = None, errors: dict | None = None):
        super().__init__(message)
        self.errors = errors or {}


class InvalidCredentials(ServiceError):
    code = "invalid_credentials"
    default_message = "Invalid credentials."


class NotFound(ServiceError):
    code = "not_found"
    default_message = "Not found."


class Conflict(ServiceError):
    code = "conflict"
    default_message = "A record with these values already exists."


class Forbidden(ServiceError):
    code = "forbidden"
    default_message = "You do not have permission to perform this action."


class InvalidState(ServiceError):
    code = "invalid_state"
    default_message = "The target is not in a state that allows this action."


class DependentRecordsExist(InvalidState):
    """Guarded delete refused because feedback still references the target."""

    code = "has_dependents"

    def __init__(self, message: str, count: int):
        super().__init__(message)
        self.count = count


class UploadFailed(ServiceError):
    code = "upload_failed"
    default_message = "Failed to upload image."
