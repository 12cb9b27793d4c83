# core/exceptions.py
"""
Error taxonomy shared by services and routes.

Services raise these; ``main.py`` maps them to HTTP responses so that route
handlers stay free of repetitive try/except blocks.
"""
from typing import Optional


class AppError(Exception):
    """Base class for every domain error raised by the backend."""

    status_code = 500
    public_message = "An unexpected error occurred. Please try again later."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ConfigurationError(AppError):
    """Static configuration is inconsistent (e.g. a role with no permission table)."""


class AuthError(AppError):
    """Invalid credentials, unknown account or revoked session. Never retried."""

    status_code = 401
    public_message = "Invalid email or password."


class PermissionDenied(AppError):
    status_code = 403
    public_message = "You do not have access to this resource."


class NotFoundError(AppError):
    status_code = 404
    public_message = "Resource not found."

    def __init__(self, message: Optional[str] = None, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class FormValidationError(AppError):
    """A required field is missing or a value is out of range."""

    status_code = 422
    public_message = "Some fields are missing or invalid."


class InvalidTransitionError(FormValidationError):
    """A subscription status change that the state machine does not allow."""


class TransactionConflict(AppError):
    """
    A store transaction lost an optimistic-concurrency race.

    Raised internally on every lost race; the transaction runner retries and only
    surfaces it once the retry budget is exhausted.
    """

    status_code = 409
    public_message = "The change conflicted with a concurrent update, try again."

    def __init__(self, message: Optional[str] = None, path: Optional[str] = None, attempts: int = 0):
        super().__init__(message)
        self.path = path
        self.attempts = attempts


class StoreError(AppError):
    """Misuse of the document store API (bad path, write-before-read in a transaction)."""


class StoreUnavailableError(AppError):
    status_code = 503
    public_message = "The data store is unavailable. Please try again later."


class MalformedDocumentError(AppError):
    """A stored document failed schema validation at the repository boundary."""

    def __init__(self, path: str, detail: str):
        super().__init__(f"Malformed document at {path}: {detail}")
        self.path = path
        self.detail = detail
