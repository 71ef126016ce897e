"""
Book repository for the Library Lending MCP Server.

Backs the catalog: ISBN lookups for duplicate detection, the title-ordered
listing behind library://books and the substring search behind
library://books/search/{term}.
"""

from sqlalchemy import func, or_, select

from ..models.book import Book as BookModel
from ..models.book import BookSummary
from .repository import BaseRepository
from .schema import Book as BookDB
from .session import safe_query


class BookRepository(BaseRepository[BookDB, BookModel]):
    """Repository for book data access."""

    @property
    def model_class(self):
        return BookDB

    @property
    def response_schema(self):
        return BookModel

    def get_by_isbn(self, isbn: str) -> BookDB | None:
        """Get the catalog row for an already normalized ISBN."""
        query = select(BookDB).where(BookDB.isbn == isbn)
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            "Failed to get book by ISBN",
        )

    def isbn_exists(self, isbn: str) -> bool:
        query = select(func.count()).select_from(BookDB).where(BookDB.isbn == isbn)
        count = safe_query(
            self.session, lambda s: s.execute(query).scalar(), "Failed to check ISBN"
        )
        return bool(count)

    def list_summaries(self) -> list[BookSummary]:
        """All books ordered by title."""
        query = select(BookDB).order_by(BookDB.title, BookDB.id)
        results = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            "Failed to list books",
        )
        return [BookSummary.model_validate(book) for book in results]

    def search(self, term: str) -> list[BookSummary]:
        """
        Case-insensitive substring match on title, author or ISBN.

        ``%`` and ``_`` in the term match literally. ISBNs are stored without
        hyphens, so the ISBN comparison uses the term with hyphens and spaces
        removed. Results are ordered by title; no relevance ranking is applied.
        """
        term = term.strip()
        conditions = [
            BookDB.title.icontains(term, autoescape=True),
            BookDB.author.icontains(term, autoescape=True),
        ]
        isbn_term = term.replace("-", "").replace(" ", "")
        if isbn_term:
            conditions.append(BookDB.isbn.icontains(isbn_term, autoescape=True))

        query = select(BookDB).where(or_(*conditions)).order_by(BookDB.title, BookDB.id)
        results = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            "Failed to search books",
        )
        return [BookSummary.model_validate(book) for book in results]
