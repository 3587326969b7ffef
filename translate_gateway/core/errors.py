"""
Gateway error taxonomy.

Every stage failure is a GatewayError carrying the HTTP status the route
returns and a caller-safe message (no secrets, SQL or tracebacks).
"""


class GatewayError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthenticationError(GatewayError):
    """Credential missing, malformed, unknown, disabled, or secret mismatch."""

    status_code = 401


class InvalidRequestError(GatewayError):
    status_code = 400


class QuotaExceededError(GatewayError):
    """One or more enabled quota rules exceeded; message lists all of them."""

    status_code = 429


class RecordingError(GatewayError):
    """Usage hit or audit entry could not be persisted."""

    status_code = 500


class CacheCorruptionError(GatewayError):
    status_code = 500


class BackendError(GatewayError):
    """Translation backend failed or returned an unusable payload."""

    status_code = 502
