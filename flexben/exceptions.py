from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AppError):
    """The requested entity does not exist in the caller's company."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class ForbiddenError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class InvalidStateError(AppError):
    """An operation is not allowed from the entity's current status."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class ValidationFailureError(AppError):
    """Business-rule validation failed (e.g. blank rejection reason)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class PeriodClosedError(AppError):
    def __init__(self, message: str = "Period is closed for new claims") -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class TooEarlyError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class PeriodExhaustedError(AppError):
    def __init__(
        self,
        message: str = "Submission window has closed and no later period is open for submissions",
    ) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class BasketLockedError(AppError):
    """The employee already exceeded the basket cap in this period."""

    def __init__(
        self,
        message: str = "Benefit basket cap was exceeded in this period; no further claims are accepted",
    ) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class PendingClaimsError(AppError):
    """A period cannot be settled while claims are still awaiting review."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(
            f"{count} claim(s) are still pending review; all claims must be reviewed before closing",
            status_code=status.HTTP_409_CONFLICT,
        )


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
