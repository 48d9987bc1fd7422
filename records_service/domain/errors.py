"""Exception hierarchy shared by the repositories, services and routers."""

from __future__ import annotations


class RecordsServiceError(Exception):
    """Base class for errors surfaced to HTTP callers."""

    status_code = 500
    public_message = "internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)


class ValidationGap(RecordsServiceError):
    """A required value is missing or malformed."""

    status_code = 400
    public_message = "invalid request"


class DuplicateLogin(RecordsServiceError):
    """Registration attempted with a login name that already exists."""

    status_code = 400
    public_message = "login already registered"


class AuthFailure(RecordsServiceError):
    """Unknown login or wrong password; both render the same response."""

    status_code = 401
    public_message = "invalid login or password"


class AccountNotFound(AuthFailure):
    pass


class InvalidCredential(AuthFailure):
    pass


class RateLimited(RecordsServiceError):
    status_code = 429
    public_message = "rate limited"


class StoreUnavailable(RecordsServiceError):
    """Connection or query failure in the relational store."""

    status_code = 500
    public_message = "storage error, try again later"
