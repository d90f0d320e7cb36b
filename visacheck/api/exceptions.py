class ApiError(Exception):
    """Base exception for request errors raised by the HTTP layer itself."""

    status_code = 400


class AuthenticationError(ApiError):
    """Raised when the x-api-key header is missing or not an active key."""

    status_code = 401


class PayloadTooLargeError(ApiError):
    """Raised when an upload exceeds the per-request file limits."""

    status_code = 413
