# util/errors.py
from fastapi import HTTPException, status

from util.enums import ErrorMessage


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ) -> None:
        super().__init__(status_code=http_status, detail=message)

    @classmethod
    def of(cls, error: ErrorMessage, details: str | None = None) -> "AppError":
        message = error.value.message
        if details:
            message = f"{message}: {details}"
        return cls(message, error.value.http_status)


class ValidationError(AppError):
    """Bad caller input; raised before any side effect."""


class RemoteHostError(AppError):
    """A Vimeo call failed or returned something unusable."""

    def __init__(
        self,
        message: str,
        http_status: int = status.HTTP_502_BAD_GATEWAY,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message, http_status)
        self.upstream_status = upstream_status


class StoreError(AppError):
    """Redis read/write failed."""

    def __init__(
        self, message: str, http_status: int = status.HTTP_503_SERVICE_UNAVAILABLE
    ) -> None:
        super().__init__(message, http_status)
