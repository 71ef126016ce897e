"""
Domain events and the in-process event sink.

The lending core announces what happened (a book was borrowed, a book was
returned, a member registered) as plain frozen records. Services receive an
``EventPublisher`` and call it only after their unit of work has committed.
Dispatch is fire-and-forget: a failing handler is logged and never undoes the
committed change.

The default sink just logs; notification delivery (email, SMS) would be
another handler subscribed to the same publisher.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class DomainEvent(BaseModel):
    """Base class for events raised by the lending core."""

    model_config = ConfigDict(frozen=True)


class BookBorrowed(DomainEvent):
    book_id: int
    member_id: int
    transaction_id: int
    borrow_date: datetime
    due_date: datetime


class BookReturned(DomainEvent):
    book_id: int
    member_id: int
    transaction_id: int
    return_date: datetime
    fine_amount: Decimal
    was_overdue: bool


class MemberRegistered(DomainEvent):
    member_id: int
    membership_number: str
    email: str
    full_name: str


EventHandler = Callable[[DomainEvent], None]


class EventPublisher(Protocol):
    """Anything that can take a committed domain event."""

    def publish(self, event: DomainEvent) -> None: ...


class InProcessEventPublisher:
    """
    Synchronous publisher dispatching to handlers registered per event type.

    Handlers run in subscription order. An exception in one handler is logged
    and the remaining handlers still run.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: type[DomainEvent]) -> list[EventHandler]:
        return list(self._handlers.get(event_type, []))

    def publish(self, event: DomainEvent) -> None:
        for handler in self.handlers_for(type(event)):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Event handler %s failed for %s",
                    getattr(handler, "__name__", repr(handler)),
                    type(event).__name__,
                )


# =============================================================================
# LOGGING SINK
# =============================================================================


def log_book_borrowed(event: BookBorrowed) -> None:
    logger.info(
        "Book borrowed: BookId=%s, MemberId=%s, TransactionId=%s, DueDate=%s",
        event.book_id,
        event.member_id,
        event.transaction_id,
        event.due_date.isoformat(),
    )


def log_book_returned(event: BookReturned) -> None:
    logger.info(
        "Book returned: BookId=%s, MemberId=%s, ReturnDate=%s, Fine=%s, WasOverdue=%s",
        event.book_id,
        event.member_id,
        event.return_date.isoformat(),
        event.fine_amount,
        event.was_overdue,
    )

    if event.was_overdue:
        logger.warning(
            "Book was returned overdue with fine: BookId=%s, MemberId=%s, Fine=%s",
            event.book_id,
            event.member_id,
            event.fine_amount,
        )


def log_member_registered(event: MemberRegistered) -> None:
    logger.info(
        "New member registered: MemberId=%s, MembershipNumber=%s, Email=%s, Name=%s",
        event.member_id,
        event.membership_number,
        event.email,
        event.full_name,
    )


def create_logging_publisher() -> InProcessEventPublisher:
    """Publisher with the logging sink subscribed to every event type."""
    publisher = InProcessEventPublisher()
    publisher.subscribe(BookBorrowed, log_book_borrowed)
    publisher.subscribe(BookReturned, log_book_returned)
    publisher.subscribe(MemberRegistered, log_member_registered)
    return publisher


_publisher: InProcessEventPublisher | None = None


def get_event_publisher() -> InProcessEventPublisher:
    """Process-wide publisher used by the MCP tools."""
    global _publisher  # noqa: PLW0603

    if _publisher is None:
        _publisher = create_logging_publisher()
    return _publisher


def reset_event_publisher() -> None:
    """Forget the process-wide publisher (useful for testing)."""
    global _publisher  # noqa: PLW0603
    _publisher = None
