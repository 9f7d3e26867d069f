"""FastAPI application exposing the user management endpoints."""
from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, FastAPI, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import ConfigurationError, Settings, load_seed_users, sample_users
from .exceptions import (
    DuplicateResourceError,
    InvalidArgumentError,
    ResourceNotFoundError,
    UserServiceError,
)
from .schemas import CreateUserRequest, ErrorResponse, UpdateUserRequest, UserResponse
from .service import UserService

logger = logging.getLogger("ticketbooking.api")

_SENSITIVE_WORDS = re.compile(r"password|token|key")

_STATUS_BY_ERROR = {
    InvalidArgumentError: status.HTTP_400_BAD_REQUEST,
    ResourceNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateResourceError: status.HTTP_409_CONFLICT,
}


def _sanitize_message(message: Optional[str]) -> str:
    if not message:
        return "An error occurred"
    return _SENSITIVE_WORDS.sub("[REDACTED]", message)


def _trace_id() -> str:
    return "trace-" + uuid.uuid4().hex[:8]


def _error_response(
    request: Request,
    *,
    code: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, str]] = None,
    trace_id: Optional[str] = None,
) -> JSONResponse:
    payload = ErrorResponse(
        code=code,
        message=message,
        status=status_code,
        path=request.url.path,
        details=details,
        trace_id=trace_id,
    )
    return JSONResponse(status_code=status_code, content=payload.model_dump(mode="json"))


def _field_errors(exc: RequestValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location) or "request"
        message = str(error.get("msg", "Invalid value"))
        errors[field] = message.removeprefix("Value error, ")
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """Translate service failures into :class:`ErrorResponse` payloads."""

    @app.exception_handler(UserServiceError)
    async def handle_service_error(request: Request, exc: UserServiceError) -> JSONResponse:
        status_code = status.HTTP_400_BAD_REQUEST
        for error_type, mapped_status in _STATUS_BY_ERROR.items():
            if isinstance(exc, error_type):
                status_code = mapped_status
                break
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return _error_response(
            request,
            code=exc.code,
            message=_sanitize_message(str(exc)),
            status_code=status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Validation error on %s %s", request.method, request.url.path)
        return _error_response(
            request,
            code="VALIDATION_ERROR",
            message="Validation failed for request",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=_field_errors(exc),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        trace_id = _trace_id()
        logger.exception("Unhandled error on %s %s (%s)", request.method, request.url.path, trace_id)
        return _error_response(
            request,
            code="INTERNAL_SERVER_ERROR",
            message="An unexpected error occurred. Please try again later.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            trace_id=trace_id,
        )


def build_user_router(service: UserService, *, default_page_size: int) -> APIRouter:
    """Return the router serving ``/api/v1/users``."""

    router = APIRouter(prefix="/api/v1/users", tags=["users"])

    @router.post("", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
    async def create_user(request: CreateUserRequest) -> UserResponse:
        return service.create_user(request)

    @router.get("", response_model=List[UserResponse])
    async def list_users(
        page: int = 0,
        size: int = Query(default=default_page_size),
        active: Optional[bool] = None,
        created_after: Optional[datetime] = None,
    ) -> List[UserResponse]:
        if active is not None:
            return service.find_active() if active else service.find_inactive()
        if created_after is not None:
            return service.find_created_after(created_after)
        return service.find_all(page, size)

    @router.get("/search", response_model=List[UserResponse])
    async def search_users(q: str = "") -> List[UserResponse]:
        return service.search_by_name(q)

    @router.get("/count")
    async def count_users() -> int:
        return service.count_users()

    @router.get("/health")
    async def health() -> str:
        return "User service is healthy"

    @router.get("/{user_id}", response_model=UserResponse)
    async def get_user(user_id: int) -> UserResponse:
        user = service.find_by_id(user_id)
        if user is None:
            raise ResourceNotFoundError.user_not_found(user_id)
        return user

    @router.put("/{user_id}", response_model=UserResponse)
    async def update_user(user_id: int, request: UpdateUserRequest) -> UserResponse:
        return service.update_user(user_id, request)

    @router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_user(user_id: int) -> Response:
        service.delete_user(user_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.patch("/{user_id}/activate", response_model=UserResponse)
    async def activate_user(user_id: int) -> UserResponse:
        return service.activate_user(user_id)

    @router.patch("/{user_id}/deactivate", response_model=UserResponse)
    async def deactivate_user(user_id: int) -> UserResponse:
        return service.deactivate_user(user_id)

    return router


def seed_users(service: UserService, settings: Settings) -> int:
    """Create the configured seed users, skipping emails that already exist."""

    requests: List[CreateUserRequest] = []
    if settings.seed_sample_data:
        requests.extend(sample_users())
    if settings.seed_file is not None:
        requests.extend(load_seed_users(settings.seed_file))

    created = 0
    for request in requests:
        try:
            service.create_user(request)
        except DuplicateResourceError:
            logger.warning("Skipping seed user %s: email already registered", request.email)
            continue
        created += 1
    if requests:
        logger.info("Seeded %s of %s configured user(s)", created, len(requests))
    return created


def create_app(
    *,
    service: UserService | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the user service."""

    app_settings = settings or Settings.from_env()
    user_service = service or UserService()

    try:
        seed_users(user_service, app_settings)
    except ConfigurationError:
        logger.exception("Failed to load seed users")
        raise

    app = FastAPI(
        title="Ticket Booking User API",
        version="0.1.0",
        description="User management endpoints for the ticket booking system.",
    )
    app.state.settings = app_settings
    app.state.user_service = user_service

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    register_exception_handlers(app)
    app.include_router(build_user_router(user_service, default_page_size=app_settings.default_page_size))

    return app


__all__ = ["build_user_router", "create_app", "register_exception_handlers", "seed_users"]
