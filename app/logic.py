"""
Message business logic.

Sits between the HTTP routes and the repository. Every write operation
returns one of the outcome types from app.results instead of raising.
"""

import logging
from typing import List, Optional
from uuid import UUID

from app.models import Message
from app.repository import DuplicateTitleError, MessageRepository
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
from app.schemas import CreateMessageRequest, UpdateMessageRequest
from app.utils import titles_match, utc_now

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 3
MAX_TITLE_LENGTH = 100
MIN_CONTENT_LENGTH = 10
MAX_CONTENT_LENGTH = 500


def _check_text(errors: FieldErrors, key: str, value: Optional[str], min_length: int, max_length: int) -> None:
    if value is None or not value.strip():
        errors.add(key, f"{key} is required.")
        return
    if len(value) < min_length:
        errors.add(key, f"{key} must be at least {min_length} characters.")
    if len(value) > max_length:
        errors.add(key, f"{key} must not exceed {max_length} characters.")


def validate_request(request: CreateMessageRequest) -> FieldErrors:
    """Field checks shared by create and update."""
    errors = FieldErrors()
    _check_text(errors, "Title", request.title, MIN_TITLE_LENGTH, MAX_TITLE_LENGTH)
    _check_text(errors, "Content", request.content, MIN_CONTENT_LENGTH, MAX_CONTENT_LENGTH)
    return errors


def _duplicate_title(title: str) -> Conflict:
    return Conflict(f"A message with the title '{title}' already exists for the organization.")


class MessageLogic:
    def __init__(self, repository: MessageRepository):
        if repository is None:
            raise ValueError("repository is required")
        self._repository = repository

    def create_message(self, organization_id: UUID, request: CreateMessageRequest) -> Result:
        errors = validate_request(request)
        if errors:
            logger.info(f"Create rejected for organization {organization_id}: {errors.to_dict()}")
            return ValidationError(errors)

        if self._repository.get_by_title(organization_id, request.title) is not None:
            logger.info(f"Create conflict on title for organization {organization_id}")
            return _duplicate_title(request.title)

        message = Message(
            organization_id=str(organization_id),
            title=request.title,
            content=request.content,
            is_active=True,
            created_at=utc_now(),
            updated_at=None,
        )

        try:
            created = self._repository.create(message)
        except DuplicateTitleError:
            return _duplicate_title(request.title)

        logger.info(f"Message {created.id} created for organization {organization_id}")
        return Created(created)

    def update_message(self, organization_id: UUID, message_id: UUID, request: UpdateMessageRequest) -> Result:
        errors = validate_request(request)
        if errors:
            logger.info(f"Update of {message_id} rejected: {errors.to_dict()}")
            return ValidationError(errors)

        existing = self._repository.get_by_id(organization_id, message_id)
        if existing is None:
            return NotFound(f"Message with id '{message_id}' not found for organization '{organization_id}'.")

        if not existing.is_active:
            return ValidationError(FieldErrors({"IsActive": ["Inactive messages cannot be updated."]}))

        if not titles_match(existing.title, request.title):
            other = self._repository.get_by_title(organization_id, request.title)
            if other is not None and other.id != existing.id:
                logger.info(f"Update of {message_id} conflicts with message {other.id}")
                return _duplicate_title(request.title)

        existing.title = request.title
        existing.content = request.content
        existing.is_active = request.is_active
        existing.updated_at = utc_now()

        try:
            updated = self._repository.update(existing)
        except DuplicateTitleError:
            return _duplicate_title(request.title)

        if updated is None:
            return NotFound(f"Message with id '{message_id}' not found during update.")

        logger.info(f"Message {message_id} updated for organization {organization_id}")
        return Updated()

    def delete_message(self, organization_id: UUID, message_id: UUID) -> Result:
        existing = self._repository.get_by_id(organization_id, message_id)
        if existing is None:
            return NotFound(f"Message with id '{message_id}' not found for organization '{organization_id}'.")

        if not existing.is_active:
            return ValidationError(FieldErrors({"IsActive": ["Inactive messages cannot be deleted."]}))

        if not self._repository.delete(organization_id, message_id):
            return NotFound(f"Message with id '{message_id}' not found during delete.")

        logger.info(f"Message {message_id} deleted for organization {organization_id}")
        return Deleted()

    def get_message(self, organization_id: UUID, message_id: UUID) -> Optional[Message]:
        return self._repository.get_by_id(organization_id, message_id)

    def get_all_messages(self, organization_id: UUID) -> List[Message]:
        return self._repository.get_all_by_organization(organization_id)
