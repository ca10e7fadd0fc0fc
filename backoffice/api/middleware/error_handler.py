"""Error handling middleware and exception handlers."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from backoffice.services.errors import BusinessRuleError, ConflictError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)

# Domain error -> HTTP status
SERVICE_ERROR_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    BusinessRuleError: status.HTTP_400_BAD_REQUEST,
}


class ErrorResponse:
    """Standardized error response format."""

    @staticmethod
    def create(
        error_type: str,
        message: str,
        details: str | dict | list | None = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> JSONResponse:
        """Create error response.

        Args:
            error_type: Error type identifier
            message: Human-readable error message
            details: Additional error details
            status_code: HTTP status code

        Returns:
            JSONResponse with error information
        """
        content = {
            "error": {
                "type": error_type,
                "message": message,
            }
        }

        if details:
            content["error"]["details"] = details

        return JSONResponse(
            status_code=status_code,
            content=content,
        )


async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors raised outside request parsing.

    Args:
        request: FastAPI request
        exc: Validation error

    Returns:
        JSON error response
    """
    logger.warning(f"Validation error: {exc}")

    return ErrorResponse.create(
        error_type="validation_error",
        message="Request validation failed",
        details=exc.errors(include_url=False, include_context=False),
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )


async def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle domain errors raised by the service layer.

    Args:
        request: FastAPI request
        exc: Domain error (not found, conflict, business rule)

    Returns:
        JSON error response with the mapped status code
    """
    status_code = status.HTTP_400_BAD_REQUEST
    for error_class, mapped in SERVICE_ERROR_STATUS.items():
        if isinstance(exc, error_class):
            status_code = mapped
            break

    logger.info(f"Service error on {request.method} {request.url.path}: {exc.message}")

    return ErrorResponse.create(
        error_type=exc.error_type,
        message=exc.message,
        details=exc.details,
        status_code=status_code,
    )


async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Handle constraint violations the services did not translate.

    Args:
        request: FastAPI request
        exc: Integrity error raised by the database driver

    Returns:
        JSON conflict response
    """
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")

    return ErrorResponse.create(
        error_type=ConflictError.error_type,
        message="La modification entre en conflit avec des données existantes",
        status_code=status.HTTP_409_CONFLICT,
    )


async def permission_exception_handler(request: Request, exc: PermissionError) -> JSONResponse:
    """Handle permission errors.

    Args:
        request: FastAPI request
        exc: Permission error

    Returns:
        JSON error response
    """
    logger.warning(f"Permission denied: {exc}")

    return ErrorResponse.create(
        error_type="permission_denied",
        message=str(exc),
        status_code=status.HTTP_403_FORBIDDEN,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions.

    Args:
        request: FastAPI request
        exc: Any exception

    Returns:
        JSON error response
    """
    logger.error(f"Unexpected error: {exc}", exc_info=True)

    return ErrorResponse.create(
        error_type="internal_error",
        message="Une erreur inattendue est survenue. Veuillez réessayer plus tard.",
        details=str(exc) if logger.isEnabledFor(logging.DEBUG) else None,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
