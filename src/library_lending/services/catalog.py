"""
Catalog service: adding titles and reading the catalog.

``create_book`` is the only write. Copy counters are left to the lending
engine once a book exists.
"""

import logging

from .. import errors
from ..database.book_repository import BookRepository
from ..database.repository import DuplicateError
from ..database.schema import Book as BookDB
from ..database.session import safe_commit
from ..errors import Result
from ..models.book import Book, BookCreate, BookSummary
from ..observability import trace_operation
from ..rules import BookStatusEnum
from .base import Service

logger = logging.getLogger(__name__)


class CatalogService(Service):
    """Operations on Book entities."""

    @property
    def books(self) -> BookRepository:
        return BookRepository(self.session)

    def create_book(self, data: BookCreate) -> Result[Book]:
        """
        Add a title with all of its copies on the shelf.

        A duplicate ISBN, whether seen up front or lost in an insert race,
        yields ``Book.IsbnAlreadyExists`` and persists nothing.
        """
        with trace_operation("catalog", "create_book", isbn=data.isbn) as span:
            if self.books.isbn_exists(data.isbn):
                span.set_attribute("outcome", "Book.IsbnAlreadyExists")
                logger.info("Rejected duplicate ISBN %s", data.isbn)
                return errors.isbn_already_exists()

            book = BookDB(
                **data.model_dump(),
                available_copies=data.total_copies,
                status=BookStatusEnum.AVAILABLE,
            )
            self.books.add(book)

            try:
                safe_commit(self.session, "create book")
            except DuplicateError:
                if not self.books.isbn_exists(data.isbn):
                    raise
                span.set_attribute("outcome", "Book.IsbnAlreadyExists")
                logger.info("Lost insert race for ISBN %s", data.isbn)
                return errors.isbn_already_exists()

            span.set_attribute("book_id", book.id)
            logger.info("Book added to catalog: BookId=%s, ISBN=%s", book.id, book.isbn)
            return Book.model_validate(book)

    def get_book(self, book_id: int) -> Result[Book]:
        book = self.books.get_by_id(book_id)
        if book is None:
            return errors.book_not_found(book_id)
        return book

    def list_books(self) -> list[BookSummary]:
        return self.books.list_summaries()

    def search_books(self, term: str) -> list[BookSummary]:
        return self.books.search(term)
