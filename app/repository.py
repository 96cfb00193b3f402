"""
Message persistence.

MessageRepository is the port the logic layer depends on;
SqlAlchemyMessageRepository implements it on top of a SQLAlchemy session.
Every lookup is scoped by organization id.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.models import Message
from app.utils import fold_title

logger = logging.getLogger(__name__)


class DuplicateTitleError(Exception):
    """Raised when the database rejects a write because the title is taken."""

    def __init__(self, organization_id: str, title: str):
        super().__init__(
            f"Title '{title}' already exists for organization '{organization_id}'"
        )
        self.organization_id = organization_id
        self.title = title


class MessageRepository(ABC):
    @abstractmethod
    def get_by_title(self, organization_id: UUID, title: str) -> Optional[Message]: ...

    @abstractmethod
    def get_by_id(self, organization_id: UUID, message_id: UUID) -> Optional[Message]: ...

    @abstractmethod
    def get_all_by_organization(self, organization_id: UUID) -> List[Message]: ...

    @abstractmethod
    def create(self, message: Message) -> Message: ...

    @abstractmethod
    def update(self, message: Message) -> Optional[Message]: ...

    @abstractmethod
    def delete(self, organization_id: UUID, message_id: UUID) -> bool: ...


class SqlAlchemyMessageRepository(MessageRepository):
    def __init__(self, db: Session):
        self._db = db

    def get_by_title(self, organization_id: UUID, title: str) -> Optional[Message]:
        """Case-insensitive title lookup within one organization."""
        logger.debug(f"Looking up message by title in organization {organization_id}")
        return (
            self._db.query(Message)
            .filter(
                Message.organization_id == str(organization_id),
                Message.title_key == fold_title(title),
            )
            .first()
        )

    def get_by_id(self, organization_id: UUID, message_id: UUID) -> Optional[Message]:
        logger.debug(f"Looking up message {message_id} in organization {organization_id}")
        result = (
            self._db.query(Message)
            .filter(
                Message.organization_id == str(organization_id),
                Message.id == str(message_id),
            )
            .first()
        )
        logger.debug(f"Message lookup result: {'found' if result else 'not found'}")
        return result

    def get_all_by_organization(self, organization_id: UUID) -> List[Message]:
        messages = (
            self._db.query(Message)
            .filter(Message.organization_id == str(organization_id))
            .order_by(Message.created_at.asc(), Message.id.asc())
            .all()
        )
        logger.debug(f"Retrieved {len(messages)} messages for organization {organization_id}")
        return messages

    def create(self, message: Message) -> Message:
        """
        Insert a new message; the id is assigned by the column default.

        Raises:
            DuplicateTitleError: the (organization, title) pair already exists
        """
        organization_id, title = message.organization_id, message.title
        self._db.add(message)
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            logger.info(f"Duplicate title rejected by database for organization {organization_id}")
            raise DuplicateTitleError(organization_id, title)
        self._db.refresh(message)
        logger.info(f"Message created: {message.id}")
        return message

    def update(self, message: Message) -> Optional[Message]:
        """
        Persist changes made to a loaded message.

        Returns None when the row was deleted since it was loaded.

        Raises:
            DuplicateTitleError: the new title already exists in the organization
        """
        organization_id, title = message.organization_id, message.title
        self._db.add(message)
        try:
            self._db.commit()
        except StaleDataError:
            self._db.rollback()
            logger.warning(f"Message vanished before update in organization {organization_id}")
            return None
        except IntegrityError:
            self._db.rollback()
            logger.info(f"Duplicate title rejected by database for organization {organization_id}")
            raise DuplicateTitleError(organization_id, title)
        self._db.refresh(message)
        logger.info(f"Message updated: {message.id}")
        return message

    def delete(self, organization_id: UUID, message_id: UUID) -> bool:
        deleted = (
            self._db.query(Message)
            .filter(
                Message.organization_id == str(organization_id),
                Message.id == str(message_id),
            )
            .delete(synchronize_session="fetch")
        )
        self._db.commit()
        logger.info(f"Deleted {deleted} row(s) for message {message_id}")
        return deleted > 0
