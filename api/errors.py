"""
Error types shared by the store layer and the pre-registration endpoint.
"""


class ConfigError(Exception):
    """Raised when environment configuration is invalid."""


# ── Store layer ──

class StoreError(Exception):
    """A failed store call. Mirrors the PostgREST error payload."""

    def __init__(self, message="", code=None, details=None, hint=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint

    def as_log_fields(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "hint": self.hint,
        }


class UniqueViolation(StoreError):
    """Insert rejected by a unique constraint (Postgres 23505)."""


class StorePermissionError(StoreError):
    """Write rejected by row-level policy or grants (Postgres 42501)."""


# ── Endpoint outcomes ──

class RegistrationError(Exception):
    """Base for outcomes rendered as {"message": ...} with an HTTP status."""

    status_code = 500
    message = "Something went wrong. Please try again later."

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_response(self) -> dict:
        return {"message": self.message}


class InvalidInput(RegistrationError):
    status_code = 400
    message = "A valid email address is required."


class AlreadyRegistered(RegistrationError):
    status_code = 409
    message = "This email is already registered."


class RateLimited(RegistrationError):
    status_code = 429
    message = "Too many requests. Please try again later."


class PermissionDenied(RegistrationError):
    status_code = 403
    message = "Permission error: check that the server uses the service role key."


class StoreFailure(RegistrationError):
    status_code = 500


class StoreUnavailable(RegistrationError):
    status_code = 503
    message = "Server not configured"
