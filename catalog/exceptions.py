"""
Exception types raised by the catalog layer.
"""


class CatalogError(Exception):
    """Base class for catalog errors."""


class BookNotFoundError(CatalogError):
    """Raised when a book id does not match any stored book."""

    def __init__(self, book_id: str):
        self.book_id = book_id
        super().__init__(f"Book not found with id: {book_id}")


class DuplicateISBNError(CatalogError):
    """Raised when an insert collides with an existing ISBN in storage."""

    def __init__(self, isbn: str):
        self.isbn = isbn
        super().__init__(f"Book with ISBN {isbn} already exists")


class InvalidISBNLengthError(CatalogError, ValueError):
    """Raised when the check digit is requested for input that is not 12 digits long."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(
            f"ISBN must have exactly 12 digits for check digit calculation, got: {length}"
        )


class ISBNKeyspaceExhaustedError(CatalogError):
    """Raised when a bounded issuer runs out of attempts without finding a free ISBN."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"No unused ISBN found after {attempts} attempts")
