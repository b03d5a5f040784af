"""Error taxonomy shared by the data layer and the HTTP handlers.

Every error carries a short snake_case ``detail`` code which is what the
client sees (``{"error": detail}``). Anything that is not an ``ApiError`` is
treated as an internal failure and rendered as an opaque 500.
"""

from __future__ import annotations


class ApiError(Exception):
    status_code: int = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(ApiError):
    """Missing or invalid request fields."""

    status_code = 400


class AuthenticationError(ApiError):
    """Missing, invalid or expired session."""

    status_code = 401


class InvalidToken(AuthenticationError):
    def __init__(self, detail: str = "token_invalid"):
        super().__init__(detail)


class ExpiredToken(AuthenticationError):
    def __init__(self, detail: str = "token_expired"):
        super().__init__(detail)


class PermissionDeniedError(ApiError):
    """Authenticated, but not the owner of the resource."""

    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    # Clients of the old API expect 400 for "user exists".
    status_code = 400


class PersistenceError(ApiError):
    status_code = 500
