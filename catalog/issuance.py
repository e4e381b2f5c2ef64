"""
Unique ISBN issuance.

The existence check and the later insert are not atomic: two concurrent
issuers can both see a candidate as free. The unique index on the ``isbn``
field in storage is what finally rejects the duplicate, and callers retry
the whole issuance when that happens.
"""

from typing import Awaitable, Callable, Optional

import structlog

from catalog.exceptions import ISBNKeyspaceExhaustedError
from catalog.isbn import generate_isbn

logger = structlog.get_logger(__name__)

ExistsByISBN = Callable[[str], Awaitable[bool]]


class ISBNIssuer:
    """Draws ISBN candidates until one is not yet present in the store."""

    def __init__(
        self,
        exists_by_isbn: ExistsByISBN,
        generator: Callable[[], str] = generate_isbn,
        max_attempts: Optional[int] = None
    ):
        """
        Initialize the issuer.

        Args:
            exists_by_isbn: Async point existence check against the book store
            generator: Candidate source, ``generate_isbn`` unless overridden
            max_attempts: Optional ceiling on draws; None means unbounded
        """
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.exists_by_isbn = exists_by_isbn
        self.generator = generator
        self.max_attempts = max_attempts

    async def issue(self) -> str:
        """
        Return an ISBN that did not exist in the store at the time of the check.

        Storage errors from the existence check propagate unchanged.

        Raises:
            ISBNKeyspaceExhaustedError: Only when ``max_attempts`` is set and used up
        """
        attempt = 0
        while self.max_attempts is None or attempt < self.max_attempts:
            attempt += 1
            candidate = self.generator()
            if not await self.exists_by_isbn(candidate):
                logger.debug("ISBN issued", isbn=candidate, attempts=attempt)
                return candidate
            logger.warning("ISBN candidate already in use", isbn=candidate, attempt=attempt)

        logger.error("ISBN issuance exhausted", max_attempts=self.max_attempts)
        raise ISBNKeyspaceExhaustedError(self.max_attempts)
