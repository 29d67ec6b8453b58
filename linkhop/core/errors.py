"""Error taxonomy shared by the service layer and the HTTP transport.

Every failure the core can report carries a stable ``kind`` so that callers
and tests can branch on the kind rather than on message text.
"""

from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    """Stable, machine-readable error kinds."""

    INVALID_TARGET = "invalid_target"
    INVALID_ALIAS = "invalid_alias"
    INVALID_EXPIRY = "invalid_expiry"
    ALIAS_TAKEN = "alias_taken"
    CODE_SPACE_EXHAUSTED = "code_space_exhausted"
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    BACKEND = "backend"


class LinkhopError(Exception):
    """Base class for errors surfaced by the link service."""

    kind: ErrorKind = ErrorKind.BACKEND
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidTargetError(LinkhopError):
    kind = ErrorKind.INVALID_TARGET
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid target URL: {reason}")
        self.reason = reason


class InvalidAliasError(LinkhopError):
    kind = ErrorKind.INVALID_ALIAS
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid custom alias: {reason}")
        self.reason = reason


class InvalidExpiryError(LinkhopError):
    kind = ErrorKind.INVALID_EXPIRY
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid expiry: {reason}")
        self.reason = reason


class AliasTakenError(LinkhopError):
    kind = ErrorKind.ALIAS_TAKEN
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, alias: str) -> None:
        super().__init__(f"Short code '{alias}' is already taken")
        self.alias = alias


class CodeSpaceExhaustedError(LinkhopError):
    """Raised when every generation attempt collided with an existing code."""

    kind = ErrorKind.CODE_SPACE_EXHAUSTED
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Unable to generate unique short code after {attempts} attempts")
        self.attempts = attempts


class LinkNotFoundError(LinkhopError):
    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, key: str) -> None:
        super().__init__(f"Link not found: {key}")
        self.key = key


class LinkInactiveError(LinkhopError):
    kind = ErrorKind.INACTIVE
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, code: str) -> None:
        super().__init__(f"Link is not active: {code}")
        self.code = code


class LinkExpiredError(LinkhopError):
    kind = ErrorKind.EXPIRED
    status_code = status.HTTP_410_GONE

    def __init__(self, code: str) -> None:
        super().__init__(f"Link has expired: {code}")
        self.code = code


class BackendError(LinkhopError):
    """A durable store call failed or timed out on a required path."""

    kind = ErrorKind.BACKEND
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class DuplicateCodeError(Exception):
    """Insert rejected by the store's unique constraint on the short code."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Short code already exists: {code}")
        self.code = code


class CacheError(Exception):
    """Cache transport failure. Never surfaced past the cache-aside store."""
