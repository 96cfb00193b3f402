import logging
from contextlib import asynccontextmanager
from typing import List
from uuid import UUID

from fastapi import FastAPI, Response, Request, Depends, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.storage import init_db, check_db_health, get_db
from app.logging_utils import setup_logging, RequestLoggingMiddleware, log_message_outcome
from app.logic import MessageLogic
from app.metrics import record_message_outcome, get_metrics, get_metrics_content_type
from app.repository import SqlAlchemyMessageRepository
from app.results import (
    Conflict,
    Created,
    Deleted,
    FieldErrors,
    NotFound,
    Result,
    Updated,
    ValidationError,
)
from app.schemas import (
    CreateMessageRequest,
    UpdateMessageRequest,
    MessageResponse,
    ErrorResponse,
    HealthResponse,
)


# Setup structured JSON logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    - Startup: Initialize database and create tables
    """
    init_db()
    yield


app = FastAPI(
    title="Messages API",
    description="Organization-scoped message CRUD service",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)


def get_message_logic(db: Session = Depends(get_db)) -> MessageLogic:
    return MessageLogic(SqlAlchemyMessageRepository(db))


# =============================================================================
# Error Mapping
# =============================================================================

_RESULT_NAMES = {
    ValidationError: "validation_error",
    Conflict: "conflict",
    NotFound: "not_found",
    Created: "created",
    Updated: "updated",
    Deleted: "deleted",
}


def _track(request: Request, operation: str, result: Result, organization_id: UUID, message_id=None) -> None:
    name = _RESULT_NAMES.get(type(result), "unexpected")
    record_message_outcome(operation, name)
    log_message_outcome(
        request=request,
        operation=operation,
        result=name,
        organization_id=str(organization_id),
        message_id=str(message_id) if message_id is not None else None,
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


def _unexpected(operation: str, result: object) -> JSONResponse:
    logger.error(f"Unexpected result from {operation}: {result!r}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Unexpected result.")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Report malformed bodies and path parameters as a field-error map,
    the same shape the message logic uses.
    """
    errors = FieldErrors()
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query")]
        key = ".".join(location) or "request"
        errors.add(key, error.get("msg", "Invalid value."))
    logger.info(f"Request validation failed: {errors.to_dict()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=errors.to_dict(),
    )


# =============================================================================
# Health Check Routes
# =============================================================================

@app.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """
    Liveness probe - always returns 200 once the app is running.
    """
    return HealthResponse(status="ok")


@app.get("/health/ready", response_model=HealthResponse)
def health_ready(response: Response) -> HealthResponse:
    """
    Readiness probe - returns 200 only if the DB is reachable and the
    messages table exists, otherwise 503.
    """
    if not check_db_health():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not_ready",
            reason="Database not reachable or schema not applied"
        )

    return HealthResponse(status="ready")


# =============================================================================
# Message Routes
# =============================================================================

@app.get(
    "/organizations/{organization_id}/messages",
    response_model=List[MessageResponse],
)
def list_messages(
    organization_id: UUID,
    logic: MessageLogic = Depends(get_message_logic),
) -> List[MessageResponse]:
    """List every message of the organization."""
    messages = logic.get_all_messages(organization_id)
    logger.info(f"GET messages: returned {len(messages)} for organization {organization_id}")
    return [MessageResponse.model_validate(m) for m in messages]


@app.get(
    "/organizations/{organization_id}/messages/{message_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    name="get_message",
)
def get_message(
    organization_id: UUID,
    message_id: UUID,
    logic: MessageLogic = Depends(get_message_logic),
):
    message = logic.get_message(organization_id, message_id)
    if message is None:
        return _error(
            status.HTTP_404_NOT_FOUND,
            f"Message with id '{message_id}' not found for organization '{organization_id}'.",
        )
    return MessageResponse.model_validate(message)


@app.post(
    "/organizations/{organization_id}/messages",
    status_code=status.HTTP_201_CREATED,
    response_model=MessageResponse,
    responses={
        400: {"description": "Field validation errors"},
        409: {"model": ErrorResponse, "description": "Title already exists"},
    },
)
def create_message(
    organization_id: UUID,
    body: CreateMessageRequest,
    request: Request,
    logic: MessageLogic = Depends(get_message_logic),
):
    """
    Create a message.

    - 201 with the new message and a Location header
    - 400 with a field-error map
    - 409 when the title is already used in the organization
    """
    result = logic.create_message(organization_id, body)

    if isinstance(result, Created):
        _track(request, "create", result, organization_id, result.value.id)
        payload = MessageResponse.model_validate(result.value)
        location = request.url_for(
            "get_message", organization_id=str(organization_id), message_id=str(payload.id)
        )
        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content=payload.model_dump(mode="json", by_alias=True),
            headers={"Location": str(location)},
        )

    _track(request, "create", result, organization_id)
    if isinstance(result, ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=result.errors.to_dict())
    if isinstance(result, Conflict):
        return _error(status.HTTP_409_CONFLICT, result.message)
    return _unexpected("create", result)


@app.put(
    "/organizations/{organization_id}/messages/{message_id}",
    responses={
        400: {"description": "Field validation errors"},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
def update_message(
    organization_id: UUID,
    message_id: UUID,
    body: UpdateMessageRequest,
    request: Request,
    logic: MessageLogic = Depends(get_message_logic),
):
    result = logic.update_message(organization_id, message_id, body)
    _track(request, "update", result, organization_id, message_id)

    if isinstance(result, ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=result.errors.to_dict())
    if isinstance(result, NotFound):
        return _error(status.HTTP_404_NOT_FOUND, result.message)
    if isinstance(result, Conflict):
        return _error(status.HTTP_409_CONFLICT, result.message)
    if isinstance(result, Updated):
        return Response(status_code=status.HTTP_200_OK)
    return _unexpected("update", result)


@app.delete(
    "/organizations/{organization_id}/messages/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        400: {"description": "Message is inactive"},
        404: {"model": ErrorResponse},
    },
)
def delete_message(
    organization_id: UUID,
    message_id: UUID,
    request: Request,
    logic: MessageLogic = Depends(get_message_logic),
):
    result = logic.delete_message(organization_id, message_id)
    _track(request, "delete", result, organization_id, message_id)

    if isinstance(result, ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=result.errors.to_dict())
    if isinstance(result, NotFound):
        return _error(status.HTTP_404_NOT_FOUND, result.message)
    if isinstance(result, Deleted):
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return _unexpected("delete", result)


# =============================================================================
# Metrics Route
# =============================================================================

@app.get("/metrics")
async def metrics() -> Response:
    """
    Expose Prometheus-style metrics.
    """
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )
