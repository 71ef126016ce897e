"""Book Resources - Library Catalog Access

Exposes catalog data via read-only resources.

Resources:
- library://books - All books ordered by title
- library://books/{book_id} - Individual book details
- library://books/search/{term} - Case-insensitive match on title, author or ISBN
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError

from ..database.session import session_scope
from ..errors import LendingError
from ..services.catalog import CatalogService

logger = logging.getLogger(__name__)


async def list_books_handler() -> dict[str, Any]:
    """Returns the whole catalog as summaries."""
    try:
        with session_scope() as session:
            books = CatalogService(session).list_books()
            return {
                "books": [book.model_dump(mode="json") for book in books],
                "total": len(books),
            }
    except Exception as e:
        logger.exception("Error in books resource")
        raise ResourceError(f"Failed to retrieve book list: {e!s}") from e


async def get_book_handler(book_id: str) -> dict[str, Any]:
    """Returns details for one book."""
    try:
        logger.debug("MCP Resource Request - books/%s", book_id)
        try:
            parsed_id = int(book_id)
        except ValueError as e:
            raise ResourceError(f"Invalid book ID: {book_id}") from e

        with session_scope() as session:
            result = CatalogService(session).get_book(parsed_id)

        if isinstance(result, LendingError):
            raise ResourceError(result.description)
        return result.model_dump(mode="json")

    except ResourceError:
        raise
    except Exception as e:
        logger.exception("Error in books/{book_id} resource")
        raise ResourceError(f"Failed to retrieve book details: {e!s}") from e


async def search_books_handler(term: str) -> dict[str, Any]:
    """Returns books whose title, author or ISBN contains the term."""
    try:
        with session_scope() as session:
            books = CatalogService(session).search_books(term)
            return {
                "term": term,
                "books": [book.model_dump(mode="json") for book in books],
                "total": len(books),
            }
    except Exception as e:
        logger.exception("Error in books/search resource")
        raise ResourceError(f"Failed to search books: {e!s}") from e


book_resources: list[dict[str, Any]] = [
    {
        "uri": "library://books",
        "name": "Book Catalog",
        "description": "All books in the catalog, ordered by title, with availability.",
        "mime_type": "application/json",
        "handler": list_books_handler,
    },
    {
        "uri_template": "library://books/{book_id}",
        "name": "Book Details",
        "description": "Get detailed information about a specific book by ID",
        "mime_type": "application/json",
        "handler": get_book_handler,
    },
    {
        "uri_template": "library://books/search/{term}",
        "name": "Book Search",
        "description": "Books whose title, author or ISBN contains the term (case-insensitive)",
        "mime_type": "application/json",
        "handler": search_books_handler,
    },
]
