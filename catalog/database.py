"""
MongoDB repository for book records.
Handles connection, indexing, and CRUD operations for the catalog.
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from catalog.exceptions import DuplicateISBNError
from catalog.models import BookData, utcnow

logger = structlog.get_logger(__name__)


def _object_id(book_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(book_id)
    except (InvalidId, TypeError):
        return None


class BookRepository:
    """
    Async MongoDB repository for books.

    The unique index on ``isbn`` created in ``connect`` is the final
    guarantee of ISBN uniqueness; ``exists_by_isbn`` only makes collisions rare.
    """

    def __init__(self, connection_url: str, database_name: str, collection_name: str = "books"):
        """
        Initialize the repository.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            collection_name: Name of the books collection
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.collection_name = collection_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.collection: Optional[AsyncIOMotorCollection] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB and ensure indexes exist."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]
            self.collection = self.database[self.collection_name]

            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB",
                        database=self.database_name,
                        collection=self.collection_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """Create the unique ISBN index and the search indexes."""
        try:
            await self.collection.create_index("isbn", unique=True, name="idx_book_isbn")
            await self.collection.create_index("title", name="idx_book_title")
            await self.collection.create_index("author", name="idx_book_author")
            logger.info("Successfully created MongoDB indexes")
        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def ping(self) -> None:
        """Raise if the database is not reachable."""
        await self.database.command("ping")

    async def exists_by_isbn(self, isbn: str) -> bool:
        """Check whether a book with the given ISBN is stored."""
        count = await self.collection.count_documents({"isbn": isbn}, limit=1)
        return count > 0

    async def insert_book(self, book: BookData) -> BookData:
        """
        Insert a new book.

        Args:
            book: BookData to insert, without an id

        Returns:
            The stored book with its id set

        Raises:
            DuplicateISBNError: If the ISBN unique index rejects the insert
        """
        try:
            result = await self.collection.insert_one(book.to_document())
            logger.debug("Successfully inserted book", title=book.title, isbn=book.isbn)
            return book.model_copy(update={"id": str(result.inserted_id)})

        except DuplicateKeyError:
            logger.warning("ISBN already exists", title=book.title, isbn=book.isbn)
            raise DuplicateISBNError(book.isbn)

        except Exception as e:
            logger.error("Failed to insert book", title=book.title, error=str(e))
            raise

    async def get_book_by_id(self, book_id: str) -> Optional[BookData]:
        """Get a book by id, or None if the id is unknown or malformed."""
        object_id = _object_id(book_id)
        if object_id is None:
            return None
        try:
            document = await self.collection.find_one({"_id": object_id})
            return BookData.from_document(document) if document else None
        except Exception as e:
            logger.error("Failed to get book by ID", book_id=book_id, error=str(e))
            raise

    async def get_book_by_isbn(self, isbn: str) -> Optional[BookData]:
        """Get a book by ISBN."""
        try:
            document = await self.collection.find_one({"isbn": isbn})
            return BookData.from_document(document) if document else None
        except Exception as e:
            logger.error("Failed to get book by ISBN", isbn=isbn, error=str(e))
            raise

    async def find_books(
        self,
        filter_query: Dict[str, Any],
        sort_field: str = "_id",
        ascending: bool = True,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[BookData], int]:
        """
        Find a page of books.

        Args:
            filter_query: MongoDB filter
            sort_field: Document field to sort on
            ascending: Sort direction
            skip: Number of documents to skip
            limit: Maximum number of documents to return

        Returns:
            Tuple of the page of books and the total match count
        """
        try:
            total = await self.collection.count_documents(filter_query)
            direction = ASCENDING if ascending else DESCENDING
            cursor = self.collection.find(filter_query).sort([(sort_field, direction)]).skip(skip).limit(limit)
            documents = await cursor.to_list(length=limit)
            return [BookData.from_document(doc) for doc in documents], total
        except Exception as e:
            logger.error("Failed to find books", filter=filter_query, error=str(e))
            raise

    @staticmethod
    def build_search_filter(term: str, fields: Sequence[str]) -> Dict[str, Any]:
        """Case-insensitive substring filter over one or more fields."""
        pattern = {"$regex": re.escape(term.strip()), "$options": "i"}
        if len(fields) == 1:
            return {fields[0]: pattern}
        return {"$or": [{field: pattern} for field in fields]}

    async def update_book_by_id(self, book_id: str, update_data: Dict[str, Any]) -> Optional[BookData]:
        """
        Update fields of a book and refresh ``updated_at``.

        Returns:
            The updated book, or None if not found
        """
        object_id = _object_id(book_id)
        if object_id is None:
            return None
        try:
            update_data = {**update_data, "updated_at": utcnow()}
            document = await self.collection.find_one_and_update(
                {"_id": object_id},
                {"$set": update_data},
                return_document=ReturnDocument.AFTER
            )
            if document is None:
                logger.warning("Book not found for update", book_id=book_id)
                return None
            logger.debug("Successfully updated book by ID", book_id=book_id, fields=list(update_data))
            return BookData.from_document(document)
        except Exception as e:
            logger.error("Failed to update book by ID", book_id=book_id, error=str(e))
            raise

    async def delete_book_by_id(self, book_id: str) -> bool:
        """Delete a book by id. Returns False if not found."""
        object_id = _object_id(book_id)
        if object_id is None:
            return False
        try:
            result = await self.collection.delete_one({"_id": object_id})
            if result.deleted_count > 0:
                logger.debug("Successfully deleted book", book_id=book_id)
                return True
            logger.warning("Book not found for deletion", book_id=book_id)
            return False
        except Exception as e:
            logger.error("Failed to delete book", book_id=book_id, error=str(e))
            raise

    async def count_books(self) -> int:
        """Get total number of books in the collection."""
        try:
            return await self.collection.count_documents({})
        except Exception as e:
            logger.error("Failed to get books count", error=str(e))
            raise
