"""
Catalog tools: adding titles to the library.

Reading the catalog is done through the library://books resources.
"""

import logging
from typing import Any

from pydantic import ValidationError

from ..database.session import get_session
from ..errors import LendingError
from ..models.book import BookCreate
from ..observability import trace_tool
from ..services.catalog import CatalogService
from .responses import (
    error_response,
    success_response,
    unexpected_error_response,
    validation_error_response,
)

logger = logging.getLogger(__name__)


@trace_tool("create_book")
async def create_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Add a book with all copies available.

    Client calls: tool.call("create_book", {"isbn": "...", "title": "...", ...})
    """
    try:
        params = BookCreate.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid create_book parameters: %s", e)
        return validation_error_response(e, "create_book")

    try:
        with get_session() as session:
            result = CatalogService(session).create_book(params)
    except Exception:
        logger.exception("Unexpected error in create_book tool")
        return unexpected_error_response()

    if isinstance(result, LendingError):
        return error_response(result)

    return success_response(
        f"Added '{result.title}' by {result.author} with {result.total_copies} "
        f"cop{'y' if result.total_copies == 1 else 'ies'}.",
        {"book": result.model_dump(mode="json")},
    )


create_book = {
    "name": "create_book",
    "description": (
        "Add a book to the catalog. All copies start on the shelf. Fails if a book "
        "with the same ISBN already exists."
    ),
    "inputSchema": BookCreate.model_json_schema(),
    "handler": create_book_handler,
}
