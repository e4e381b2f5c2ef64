"""
Tests for unique ISBN issuance.
"""

from itertools import cycle
from unittest.mock import AsyncMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from catalog.exceptions import ISBNKeyspaceExhaustedError
from catalog.isbn import is_valid_isbn
from catalog.issuance import ISBNIssuer

TAKEN_ISBN = "9780306406157"
FREE_ISBN = "9780000000002"


class TestISBNIssuer:
    """Test cases for ISBNIssuer."""

    @pytest.mark.asyncio
    async def test_returns_first_free_candidate(self):
        """A free first candidate is returned after a single check."""
        exists = AsyncMock(return_value=False)
        issuer = ISBNIssuer(exists, generator=lambda: FREE_ISBN)

        assert await issuer.issue() == FREE_ISBN
        exists.assert_awaited_once_with(FREE_ISBN)

    @pytest.mark.asyncio
    async def test_redraws_when_candidate_is_taken(self):
        """A taken candidate is discarded and the next one checked."""
        exists = AsyncMock(side_effect=lambda isbn: isbn == TAKEN_ISBN)
        candidates = iter([TAKEN_ISBN, FREE_ISBN])
        issuer = ISBNIssuer(exists, generator=lambda: next(candidates))

        assert await issuer.issue() == FREE_ISBN
        assert exists.await_count == 2
        assert [c.args[0] for c in exists.await_args_list] == [TAKEN_ISBN, FREE_ISBN]

    @pytest.mark.asyncio
    async def test_unbounded_by_default(self):
        """Without a ceiling the issuer keeps drawing past many collisions."""
        exists = AsyncMock(side_effect=lambda isbn: isbn == TAKEN_ISBN)
        candidates = iter([TAKEN_ISBN] * 500 + [FREE_ISBN])
        issuer = ISBNIssuer(exists, generator=lambda: next(candidates))

        assert issuer.max_attempts is None
        assert await issuer.issue() == FREE_ISBN
        assert exists.await_count == 501

    @pytest.mark.asyncio
    async def test_bounded_issuer_raises_when_exhausted(self):
        """A configured ceiling turns endless collisions into an error."""
        exists = AsyncMock(return_value=True)
        generator = cycle([TAKEN_ISBN]).__next__
        issuer = ISBNIssuer(exists, generator=generator, max_attempts=5)

        with pytest.raises(ISBNKeyspaceExhaustedError) as exc_info:
            await issuer.issue()

        assert exc_info.value.attempts == 5
        assert exists.await_count == 5

    @pytest.mark.asyncio
    async def test_bounded_issuer_succeeds_on_last_attempt(self):
        exists = AsyncMock(side_effect=lambda isbn: isbn == TAKEN_ISBN)
        candidates = iter([TAKEN_ISBN, TAKEN_ISBN, FREE_ISBN])
        issuer = ISBNIssuer(exists, generator=lambda: next(candidates), max_attempts=3)

        assert await issuer.issue() == FREE_ISBN

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            ISBNIssuer(AsyncMock(), max_attempts=0)

    @pytest.mark.asyncio
    async def test_storage_errors_propagate(self):
        """Existence-check failures reach the caller unchanged."""
        error = ServerSelectionTimeoutError("no servers")
        exists = AsyncMock(side_effect=error)
        issuer = ISBNIssuer(exists)

        with pytest.raises(ServerSelectionTimeoutError) as exc_info:
            await issuer.issue()

        assert exc_info.value is error
        exists.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_never_returns_the_taken_code(self):
        """With the real generator the one taken code is never issued."""
        exists = AsyncMock(side_effect=lambda isbn: isbn == TAKEN_ISBN)
        issuer = ISBNIssuer(exists)

        for _ in range(1000):
            isbn = await issuer.issue()
            assert isbn != TAKEN_ISBN
            assert is_valid_isbn(isbn)

    @pytest.mark.asyncio
    async def test_empty_store_needs_one_check_per_issue(self):
        """In an empty store every issue costs exactly one existence check."""
        exists = AsyncMock(return_value=False)
        issuer = ISBNIssuer(exists)
        draws = 10_000

        issued = [await issuer.issue() for _ in range(draws)]

        assert exists.await_count == draws
        assert all(is_valid_isbn(isbn) for isbn in issued)
