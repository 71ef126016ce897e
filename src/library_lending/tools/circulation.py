"""
Circulation tools: borrowing and returning books.

Both tools run one lending-engine flow per call. Business-rule rejections
come back as tool errors with a stable code, e.g.
``BorrowingTransaction.AlreadyBorrowed`` or ``Member.BorrowingLimitExceeded``.
"""

import logging
from typing import Any

from pydantic import ValidationError

from ..database.session import get_session
from ..errors import LendingError
from ..events import get_event_publisher
from ..models.transaction import BorrowBookInput, ReturnBookInput
from ..observability import trace_tool
from ..services.lending import LendingService
from .responses import (
    error_response,
    success_response,
    unexpected_error_response,
    validation_error_response,
)

logger = logging.getLogger(__name__)


@trace_tool("borrow_book")
async def borrow_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Lend a book to a member.

    Client calls: tool.call("borrow_book", {"book_id": 1, "member_id": 7})
    """
    try:
        params = BorrowBookInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid borrow_book parameters: %s", e)
        return validation_error_response(e, "borrow_book")

    try:
        with get_session() as session:
            service = LendingService(session, get_event_publisher())
            result = service.borrow_book(params.book_id, params.member_id)
    except Exception:
        logger.exception("Unexpected error in borrow_book tool")
        return unexpected_error_response()

    if isinstance(result, LendingError):
        return error_response(result)

    message = (
        f"Book {result.book_id} borrowed by member {result.member_id}. "
        f"Due date: {result.due_date.strftime('%B %d, %Y')} "
        f"({result.loan_period_days}-day loan)"
    )
    return success_response(message, {"transaction": result.model_dump(mode="json")})


@trace_tool("return_book")
async def return_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Return a borrowed book, assessing a fine if it is late.

    Client calls: tool.call("return_book", {"transaction_id": 15})
    """
    try:
        params = ReturnBookInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid return_book parameters: %s", e)
        return validation_error_response(e, "return_book")

    try:
        with get_session() as session:
            service = LendingService(session, get_event_publisher())
            result = service.return_book(params.transaction_id)
    except Exception:
        logger.exception("Unexpected error in return_book tool")
        return unexpected_error_response()

    if isinstance(result, LendingError):
        return error_response(result)

    message = f"Book {result.book_id} returned by member {result.member_id}."
    if result.fine_amount > 0:
        message += f" Returned late. Fine assessed: {result.fine_amount:.2f}"
    else:
        message += " Returned on time - no fine."

    return success_response(message, {"transaction": result.model_dump(mode="json")})


borrow_book = {
    "name": "borrow_book",
    "description": (
        "Borrow a book for a member. Checks that the member is active, under the "
        "borrowing limit and not already holding this book, and that a copy is "
        "available. The due date follows the member's loan period."
    ),
    "inputSchema": BorrowBookInput.model_json_schema(),
    "handler": borrow_book_handler,
}

return_book = {
    "name": "return_book",
    "description": (
        "Return a borrowed book by transaction ID. Late returns are fined 2.00 per "
        "full day past the due date."
    ),
    "inputSchema": ReturnBookInput.model_json_schema(),
    "handler": return_book_handler,
}
