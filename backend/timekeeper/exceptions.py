from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int
    context: dict[str, Any] | None = None


class AppError(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed entry, bad period window or empty rejection reason."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(
            message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            context={"field": field} if field else None,
        )
        self.field = field


class NotFoundError(AppError):
    """Unknown entry, period or employee."""

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(
            f"{entity} not found",
            status_code=status.HTTP_404_NOT_FOUND,
            context={"entity": entity, "id": str(entity_id)},
        )


class ForbiddenError(AppError):
    """Role or ownership check failed."""

    def __init__(self, message: str, required_roles: list[str] | None = None) -> None:
        super().__init__(
            message,
            status_code=status.HTTP_403_FORBIDDEN,
            context={"required_roles": required_roles} if required_roles is not None else None,
        )
        self.required_roles = required_roles


class InvalidTransitionError(AppError):
    """A pay period cannot take the requested action from its current status."""

    def __init__(
        self,
        current_status: str,
        action: str,
        reason: str | None = None,
        entity: str = "pay period",
    ) -> None:
        message = f"Cannot {action} a {entity} in status {current_status}"
        if reason:
            message += f": {reason}"
        super().__init__(
            message,
            status_code=status.HTTP_409_CONFLICT,
            context={"current_status": current_status, "action": action},
        )
        self.current_status = current_status
        self.action = action


class ConflictError(InvalidTransitionError):
    """A concurrent request changed the record first."""

    def __init__(self, current_status: str, action: str, entity: str = "pay period") -> None:
        super().__init__(current_status, action, reason=f"{entity} was modified concurrently", entity=entity)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code == status.HTTP_403_FORBIDDEN:
        logger.warning("Denied %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
            context=exc.context or None,
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
