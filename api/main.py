"""
FastAPI main application for the Book Catalog API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, HTTPException, Query, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from api.config import config as api_config
from api.database import BookCatalogService
from api.models import (
    BookListResponse, BookQueryParams, BookRequest, BookResponse,
    ErrorResponse, HealthResponse, ISBNValidationResponse, SortBy
)
from catalog.database import BookRepository
from catalog.exceptions import BookNotFoundError, DuplicateISBNError
from catalog.isbn import classify_isbn
from catalog.issuance import ISBNIssuer
from utilities.config import config
from utilities.logger import setup_logging

logger = structlog.get_logger(__name__)

# Global catalog service
book_service: BookCatalogService = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting Book Catalog API")

    global book_service
    repository = BookRepository(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        collection_name=config.mongodb_collection
    )
    try:
        await repository.connect()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    issuer = ISBNIssuer(repository.exists_by_isbn, max_attempts=config.isbn_max_attempts)
    book_service = BookCatalogService(
        repository,
        issuer=issuer,
        create_retry_attempts=config.create_retry_attempts
    )

    yield

    logger.info("Shutting down Book Catalog API")
    await repository.disconnect()


app = FastAPI(
    title=api_config.api_title,
    description="""
    A REST API for managing a book catalog.

    ## Features

    * **Book Management**: Create, read, update and delete books
    * **ISBN Generation**: Every new book gets a unique, valid ISBN-13 (978 prefix)
    * **Search**: Case-insensitive search by title and/or author
    * **Pagination**: Page, page size and sorting on every listing
    * **ISBN Validation**: Check any ISBN-13 and get the reason it is invalid
    """,
    version=api_config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)


def _error(status_code: int, error: str, detail: str = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail, status_code=status_code).model_dump(),
        headers=headers
    )


def get_service() -> BookCatalogService:
    """Return the catalog service or fail if startup did not complete."""
    if not book_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service not available"
        )
    return book_service


# Exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions."""
    return _error(exc.status_code, str(exc.detail), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    """Report request validation failures as 400 with the field messages."""
    messages = []
    for err in exc.errors():
        message = err.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators with "Value error, "
        messages.append(message.removeprefix("Value error, "))
    return _error(
        status.HTTP_400_BAD_REQUEST,
        messages[0] if messages else "Invalid request",
        detail="; ".join(messages)
    )


@app.exception_handler(BookNotFoundError)
async def book_not_found_handler(request, exc: BookNotFoundError):
    """Handle unknown book ids."""
    return _error(status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(DuplicateISBNError)
async def duplicate_isbn_handler(request, exc: DuplicateISBNError):
    """Handle ISBN collisions that survived every create retry."""
    logger.error("ISBN collision not resolved", isbn=exc.isbn, path=request.url.path)
    return _error(status.HTTP_409_CONFLICT, str(exc))


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        detail=str(exc) if api_config.debug else None
    )


def _query_params(sort_by: SortBy, sort_order: str, page: int, per_page: int) -> BookQueryParams:
    """Build listing parameters; a bad value is reported like any other query error."""
    try:
        return BookQueryParams(sort_by=sort_by, sort_order=sort_order, page=page, per_page=per_page)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    try:
        db_status = "unavailable"
        if book_service:
            health_info = await book_service.health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.now(timezone.utc),
            version=api_config.api_version,
            database_status=db_status
        )
    except Exception as e:
        logger.error("Health check failed", error=str(e))
        return HealthResponse(
            status="unhealthy",
            timestamp=datetime.now(timezone.utc),
            version=api_config.api_version,
            database_status="unhealthy"
        )


# Books endpoints
@app.post("/books", response_model=BookResponse, status_code=status.HTTP_201_CREATED, tags=["Books"])
async def create_book(request: BookRequest):
    """
    Create a new book with an auto-generated ISBN.

    - **title**: Book title (max 100 characters)
    - **author**: Book author (max 50 characters)
    """
    return await get_service().create_book(request)


@app.get("/books", response_model=BookListResponse, tags=["Books"])
async def get_books(
    page: int = Query(1, ge=1),
    per_page: int = Query(api_config.default_page_size, ge=1, le=api_config.max_page_size),
    sort_by: SortBy = SortBy.ID,
    sort_order: str = Query("asc", description="Sort order (asc or desc, any case)")
):
    """
    Get all books with sorting and pagination.

    - **page**: Page number (starts from 1)
    - **per_page**: Items per page (1-100)
    - **sort_by**: Sort field (id, title, author, isbn, created_at, updated_at)
    - **sort_order**: Sort order (asc, desc; case-insensitive)
    """
    return await get_service().get_books(_query_params(sort_by, sort_order, page, per_page))


@app.get("/books/search", response_model=BookListResponse, tags=["Search"])
async def search_books(
    q: str = Query(..., description="Matched against title and author"),
    page: int = Query(1, ge=1),
    per_page: int = Query(api_config.default_page_size, ge=1, le=api_config.max_page_size),
    sort_by: SortBy = SortBy.ID,
    sort_order: str = Query("asc", description="Sort order (asc or desc, any case)")
):
    """Search books whose title or author contains the query (case-insensitive)."""
    return await get_service().search_books(q, _query_params(sort_by, sort_order, page, per_page))


@app.get("/books/search/title", response_model=BookListResponse, tags=["Search"])
async def search_books_by_title(
    title: str = Query(..., description="Title search term"),
    page: int = Query(1, ge=1),
    per_page: int = Query(api_config.default_page_size, ge=1, le=api_config.max_page_size),
    sort_by: SortBy = SortBy.ID,
    sort_order: str = Query("asc", description="Sort order (asc or desc, any case)")
):
    """Search books by title."""
    return await get_service().search_books(
        title, _query_params(sort_by, sort_order, page, per_page), fields=("title",)
    )


@app.get("/books/search/author", response_model=BookListResponse, tags=["Search"])
async def search_books_by_author(
    author: str = Query(..., description="Author search term"),
    page: int = Query(1, ge=1),
    per_page: int = Query(api_config.default_page_size, ge=1, le=api_config.max_page_size),
    sort_by: SortBy = SortBy.ID,
    sort_order: str = Query("asc", description="Sort order (asc or desc, any case)")
):
    """Search books by author."""
    return await get_service().search_books(
        author, _query_params(sort_by, sort_order, page, per_page), fields=("author",)
    )


@app.get("/books/isbn/{isbn}", response_model=BookResponse, tags=["Books"])
async def get_book_by_isbn(isbn: str):
    """
    Get a single book by ISBN.

    Malformed ISBNs are rejected with the reason they are invalid.
    """
    outcome = classify_isbn(isbn)
    if not outcome.is_valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=outcome.message)

    book = await get_service().get_book_by_isbn(isbn)
    if not book:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Book with ISBN '{isbn}' not found"
        )
    return book


@app.get("/books/{book_id}", response_model=BookResponse, tags=["Books"])
async def get_book(book_id: str):
    """Get a single book by ID."""
    book = await get_service().get_book_by_id(book_id)
    if not book:
        raise BookNotFoundError(book_id)
    return book


@app.put("/books/{book_id}", response_model=BookResponse, tags=["Books"])
async def update_book(book_id: str, request: BookRequest):
    """Update a book's title and author (idempotent). The ISBN never changes."""
    return await get_service().update_book(book_id, request)


@app.delete("/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Books"])
async def delete_book(book_id: str):
    """Delete a book by ID."""
    await get_service().delete_book(book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ISBN endpoints
@app.get("/isbn/validate", response_model=ISBNValidationResponse, tags=["ISBN"])
async def validate_isbn(isbn: str = Query(..., description="ISBN-13 to validate")):
    """Validate an ISBN-13 and report the first problem found."""
    outcome = classify_isbn(isbn)
    return ISBNValidationResponse(isbn=isbn, is_valid=outcome.is_valid, message=outcome.message)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level=api_config.log_level.lower()
    )
