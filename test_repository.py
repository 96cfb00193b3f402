"""
Tests for SqlAlchemyMessageRepository against a real database.

Tests cover:
- title_key folding and case-insensitive lookups (including non-ASCII)
- Unique index violations surfacing as DuplicateTitleError
- Rows deleted by another session surfacing as None from update()
"""

import uuid

import pytest

from app.models import Message
from app.repository import DuplicateTitleError, SqlAlchemyMessageRepository
from app.storage import Base, SessionLocal, engine
from app.utils import utc_now


@pytest.fixture(scope="function")
def sessions():
    """Two independent sessions over fresh tables."""
    Base.metadata.create_all(bind=engine)
    first, second = SessionLocal(), SessionLocal()

    yield first, second

    first.close()
    second.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def organization_id():
    return uuid.uuid4()


def new_message(organization_id, title: str) -> Message:
    return Message(
        organization_id=str(organization_id),
        title=title,
        content="x" * 20,
        is_active=True,
        created_at=utc_now(),
    )


class TestTitleKey:
    """Test the stored case-folded title."""

    def test_title_key_follows_title(self):
        message = new_message(uuid.uuid4(), "Straße Plan")
        assert message.title_key == "strasse plan"

        message.title = "ÖL Report"
        assert message.title_key == "öl report"

    def test_get_by_title_folds_non_ascii(self, sessions, organization_id):
        first, _ = sessions
        repo = SqlAlchemyMessageRepository(first)
        created = repo.create(new_message(organization_id, "Émile notes"))

        found = repo.get_by_title(organization_id, "ÉMILE NOTES")

        assert found is not None
        assert found.id == created.id
        assert repo.get_by_title(uuid.uuid4(), "émile notes") is None


class TestConcurrentWrites:
    """Test writes racing between two sessions."""

    def test_create_duplicate_from_second_session_raises(self, sessions, organization_id):
        first, second = sessions
        SqlAlchemyMessageRepository(first).create(new_message(organization_id, "Émile notes"))

        with pytest.raises(DuplicateTitleError):
            SqlAlchemyMessageRepository(second).create(new_message(organization_id, "émile notes"))

        assert len(SqlAlchemyMessageRepository(second).get_all_by_organization(organization_id)) == 1

    def test_update_into_taken_title_raises(self, sessions, organization_id):
        first, second = sessions
        first_repo = SqlAlchemyMessageRepository(first)
        first_repo.create(new_message(organization_id, "ÖL report"))
        other = first_repo.create(new_message(organization_id, "Other report"))

        second_repo = SqlAlchemyMessageRepository(second)
        loaded = second_repo.get_by_id(organization_id, uuid.UUID(other.id))
        loaded.title = "öl report"

        with pytest.raises(DuplicateTitleError):
            second_repo.update(loaded)

    def test_update_of_row_deleted_elsewhere_returns_none(self, sessions, organization_id):
        first, second = sessions
        first_repo = SqlAlchemyMessageRepository(first)
        created = first_repo.create(new_message(organization_id, "Short lived"))
        message_id = uuid.UUID(created.id)

        second_repo = SqlAlchemyMessageRepository(second)
        loaded = second_repo.get_by_id(organization_id, message_id)

        assert first_repo.delete(organization_id, message_id) is True

        loaded.content = "y" * 20
        loaded.updated_at = utc_now()
        assert second_repo.update(loaded) is None

    def test_delete_missing_returns_false(self, sessions, organization_id):
        first, _ = sessions

        assert SqlAlchemyMessageRepository(first).delete(organization_id, uuid.uuid4()) is False
