"""Typed ledger failures.

Every domain violation is raised as a subclass of ``LedgerError``. Since
``LedgerError`` is an ``HTTPException``, services raise these directly and
the route layer needs no translation: FastAPI renders the status code and
``{"detail": ...}`` body.
"""

from fastapi import HTTPException, status


class LedgerError(HTTPException):
    """Base class for all home-game ledger failures."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Ledger operation failed"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
        )


class Unauthenticated(LedgerError):
    """No resolvable acting identity."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "User not authenticated"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail)
        self.headers = {"WWW-Authenticate": "Bearer"}


class NotFound(LedgerError):
    """Game, request, player or invite absent."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Unauthorized(LedgerError):
    """Actor is not the host (or not the owning user) for this operation."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not authorized"


class InvalidState(LedgerError):
    """The target is not in a state that allows the operation."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid state for this operation"


class InvalidAmount(LedgerError):
    """Amount is outside the allowed range."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Amount must be greater than zero"


class WriteConflict(LedgerError):
    """The atomic update lost every attempt to a concurrent writer."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Too many concurrent updates, please retry"
