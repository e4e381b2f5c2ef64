"""
Catalog service layer for the FastAPI application.
"""

import math
from typing import Dict, Optional, Sequence

import structlog

from api.models import BookListResponse, BookQueryParams, BookRequest, BookResponse, SortOrder
from catalog.database import BookRepository
from catalog.exceptions import BookNotFoundError, DuplicateISBNError
from catalog.issuance import ISBNIssuer
from catalog.models import BookData

logger = structlog.get_logger(__name__)

SEARCH_ALL_FIELDS = ("title", "author")


class BookCatalogService:
    """Book use cases on top of the repository and the ISBN issuer."""

    def __init__(
        self,
        repository: BookRepository,
        issuer: Optional[ISBNIssuer] = None,
        create_retry_attempts: int = 3
    ):
        if create_retry_attempts < 1:
            raise ValueError("create_retry_attempts must be at least 1")
        self.repository = repository
        self.issuer = issuer or ISBNIssuer(repository.exists_by_isbn)
        self.create_retry_attempts = create_retry_attempts

    async def create_book(self, request: BookRequest) -> BookResponse:
        """
        Create a book with a freshly issued ISBN.

        The issuer's existence check can race with a concurrent create. When
        the storage unique index rejects the insert, issuance is run again.

        Raises:
            DuplicateISBNError: If every attempt collided in storage
        """
        last_error: Optional[DuplicateISBNError] = None
        for attempt in range(1, self.create_retry_attempts + 1):
            isbn = await self.issuer.issue()
            book = BookData(title=request.title, author=request.author, isbn=isbn)
            try:
                stored = await self.repository.insert_book(book)
            except DuplicateISBNError as e:
                logger.warning("ISBN taken before insert, reissuing", isbn=isbn, attempt=attempt)
                last_error = e
                continue

            logger.info("Book created", book_id=stored.id, isbn=stored.isbn)
            return BookResponse.from_book(stored)

        logger.error("Failed to create book", attempts=self.create_retry_attempts)
        raise last_error

    async def get_book_by_id(self, book_id: str) -> Optional[BookResponse]:
        """
        Get a single book by ID.

        Returns:
            BookResponse if found, None otherwise
        """
        book = await self.repository.get_book_by_id(book_id)
        return BookResponse.from_book(book) if book else None

    async def get_book_by_isbn(self, isbn: str) -> Optional[BookResponse]:
        """Get a single book by ISBN, None if absent."""
        book = await self.repository.get_book_by_isbn(isbn)
        return BookResponse.from_book(book) if book else None

    async def get_books(self, query_params: BookQueryParams) -> BookListResponse:
        """Get all books with sorting and pagination."""
        return await self._get_page({}, query_params)

    async def search_books(
        self,
        term: str,
        query_params: BookQueryParams,
        fields: Sequence[str] = SEARCH_ALL_FIELDS
    ) -> BookListResponse:
        """
        Search books by case-insensitive substring.

        Args:
            term: Search term, surrounding whitespace is ignored
            query_params: Sorting and pagination
            fields: Fields to match; any match counts
        """
        filter_query = self.repository.build_search_filter(term, fields)
        return await self._get_page(filter_query, query_params)

    async def _get_page(self, filter_query: Dict, query_params: BookQueryParams) -> BookListResponse:
        books, total = await self.repository.find_books(
            filter_query,
            sort_field=query_params.sort_by.document_field,
            ascending=query_params.sort_order == SortOrder.ASC,
            skip=query_params.skip,
            limit=query_params.per_page
        )
        total_pages = math.ceil(total / query_params.per_page)

        return BookListResponse(
            books=[BookResponse.from_book(book) for book in books],
            total=total,
            page=query_params.page,
            per_page=query_params.per_page,
            total_pages=total_pages,
            has_next=query_params.page < total_pages,
            has_prev=query_params.page > 1
        )

    async def update_book(self, book_id: str, request: BookRequest) -> BookResponse:
        """
        Update title and author of a book.

        Only fields whose value differs are written; an update that changes
        nothing leaves the stored book and its ``updated_at`` untouched.

        Raises:
            BookNotFoundError: If no book has this id
        """
        existing = await self.repository.get_book_by_id(book_id)
        if existing is None:
            raise BookNotFoundError(book_id)

        changes = {
            field: getattr(request, field)
            for field in ("title", "author")
            if getattr(existing, field) != getattr(request, field)
        }
        if not changes:
            logger.debug("Book unchanged, skipping update", book_id=book_id)
            return BookResponse.from_book(existing)

        updated = await self.repository.update_book_by_id(book_id, changes)
        if updated is None:
            raise BookNotFoundError(book_id)

        logger.info("Book updated", book_id=book_id, fields=sorted(changes))
        return BookResponse.from_book(updated)

    async def delete_book(self, book_id: str) -> None:
        """
        Delete a book.

        Raises:
            BookNotFoundError: If no book has this id
        """
        if not await self.repository.delete_book_by_id(book_id):
            raise BookNotFoundError(book_id)
        logger.info("Book deleted", book_id=book_id)

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.repository.ping()
            books_count = await self.repository.count_books()

            return {
                "status": "healthy",
                "books_collection": "accessible",
                "books_count": books_count
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
