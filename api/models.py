"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from catalog.models import AUTHOR_MAX_LENGTH, TITLE_MAX_LENGTH, BookData


class SortBy(str, Enum):
    """Sort options for book listings."""
    ID = "id"
    TITLE = "title"
    AUTHOR = "author"
    ISBN = "isbn"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"

    @property
    def document_field(self) -> str:
        """Name of the stored document field."""
        return "_id" if self is SortBy.ID else self.value


class SortOrder(str, Enum):
    """Sort order options."""
    ASC = "asc"
    DESC = "desc"


class BookRequest(BaseModel):
    """Request body for creating or updating a book. The ISBN is always generated."""
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        """Title must be present and at most 100 characters."""
        if not v.strip():
            raise ValueError('Title cannot be blank')
        if len(v) > TITLE_MAX_LENGTH:
            raise ValueError(f'Title cannot exceed {TITLE_MAX_LENGTH} characters')
        return v

    @field_validator('author')
    @classmethod
    def validate_author(cls, v):
        """Author must be present and at most 50 characters."""
        if not v.strip():
            raise ValueError('Author cannot be blank')
        if len(v) > AUTHOR_MAX_LENGTH:
            raise ValueError(f'Author cannot exceed {AUTHOR_MAX_LENGTH} characters')
        return v

    model_config = {
        "json_schema_extra": {
            "example": {"title": "The Pragmatic Programmer", "author": "Andrew Hunt"}
        }
    }


class BookResponse(BaseModel):
    """Book response model for API."""
    id: str = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    isbn: str = Field(..., description="Generated ISBN-13 code")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @classmethod
    def from_book(cls, book: BookData) -> "BookResponse":
        """Build a response from a stored book."""
        return cls(**book.model_dump())


class BookListResponse(BaseModel):
    """Response model for book list with pagination."""
    books: List[BookResponse] = Field(..., description="List of books")
    total: int = Field(..., description="Total number of books")
    page: int = Field(..., description="Current page number")
    per_page: int = Field(..., description="Number of books per page")
    total_pages: int = Field(..., description="Total number of pages")
    has_next: bool = Field(..., description="Whether there is a next page")
    has_prev: bool = Field(..., description="Whether there is a previous page")


class BookQueryParams(BaseModel):
    """Pagination and sort parameters for book listing and search."""
    sort_by: SortBy = Field(SortBy.ID, description="Sort field")
    sort_order: SortOrder = Field(SortOrder.ASC, description="Sort order")
    page: int = Field(1, ge=1, description="Page number")
    per_page: int = Field(10, ge=1, le=100, description="Items per page")

    @field_validator('sort_order', mode='before')
    @classmethod
    def normalize_sort_order(cls, v):
        """Accept sort order in any case."""
        return v.lower() if isinstance(v, str) else v

    @property
    def skip(self) -> int:
        """Number of records before the requested page."""
        return (self.page - 1) * self.per_page


class ISBNValidationResponse(BaseModel):
    """ISBN validation response model."""
    isbn: Optional[str] = Field(None, description="The ISBN that was checked")
    is_valid: bool = Field(..., description="Whether the ISBN is valid")
    message: str = Field(..., description="Validation reason")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
