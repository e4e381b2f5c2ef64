"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from catalog.database import BookRepository
from catalog.models import BookData

VALID_ISBN = "9780306406157"


@pytest.fixture
def sample_book_data():
    """Create a stored sample book for testing."""
    timestamp = datetime(2025, 9, 21, 10, 0, tzinfo=timezone.utc)
    return BookData(
        id="650c2f8e1c4ae5b1d2a3f001",
        title="Test Book",
        author="Test Author",
        isbn=VALID_ISBN,
        created_at=timestamp,
        updated_at=timestamp
    )


@pytest.fixture
def sample_book_document(sample_book_data):
    """The MongoDB document for the sample book."""
    from bson import ObjectId

    document = sample_book_data.to_document()
    document["_id"] = ObjectId(sample_book_data.id)
    return document


@pytest.fixture
def mock_book_repository(sample_book_data):
    """Create a mock book repository for testing."""
    repository = AsyncMock(spec=BookRepository)
    repository.exists_by_isbn.return_value = False
    repository.insert_book.side_effect = lambda book: book.model_copy(update={"id": sample_book_data.id})
    repository.get_book_by_id.return_value = sample_book_data
    repository.get_book_by_isbn.return_value = sample_book_data
    repository.find_books.return_value = ([sample_book_data], 1)
    repository.delete_book_by_id.return_value = True
    repository.count_books.return_value = 1
    repository.build_search_filter = BookRepository.build_search_filter
    return repository
