"""
Lending engine: the borrow and return flows.

Each flow is one unit of work on the service's session. All gates run
before anything is mutated; the transaction row and the book and member
counters are then committed together. If the commit loses an optimistic
concurrency check, the session is rolled back and the whole flow re-runs
from the first gate against fresh rows, up to ``max_retries`` attempts.

Events are published only after a successful commit.
"""

import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

from .. import errors
from ..clock import Clock, utc_now
from ..config import get_config
from ..database.book_repository import BookRepository
from ..database.member_repository import MemberRepository
from ..database.repository import ConcurrencyConflictError
from ..database.schema import BorrowingTransaction as TransactionDB
from ..database.session import safe_commit
from ..database.transaction_repository import TransactionRepository
from ..errors import LendingError, Result
from ..events import BookBorrowed, BookReturned, EventPublisher
from ..models.transaction import BorrowingTransaction
from ..observability import trace_operation
from .base import Service

logger = logging.getLogger(__name__)


class LendingService(Service):
    """Borrow and return, orchestrated across the catalog and the registry."""

    def __init__(
        self,
        session: Session,
        publisher: EventPublisher | None = None,
        clock: Clock = utc_now,
        max_retries: int | None = None,
    ):
        super().__init__(session, publisher, clock)
        if max_retries is None:
            max_retries = get_config().max_commit_retries
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        self.max_retries = max_retries

        self.books = BookRepository(session)
        self.members = MemberRepository(session)
        self.transactions = TransactionRepository(session)

    def borrow_book(self, book_id: int, member_id: int) -> Result[BorrowingTransaction]:
        """
        Lend a copy of a book to a member.

        Gates, in order: the book exists, the member exists, the member has no
        active loan of this book, the member may borrow (active, under limit),
        a copy is available.
        """
        with trace_operation("lending", "borrow_book", book_id=book_id, member_id=member_id) as span:
            result = self._with_retries("borrow book", lambda: self._borrow(book_id, member_id))

            if isinstance(result, LendingError):
                span.set_attribute("outcome", result.code)
                logger.info(
                    "Borrow rejected: BookId=%s, MemberId=%s, Code=%s",
                    book_id,
                    member_id,
                    result.code,
                )
                return result

            span.set_attribute("transaction_id", result.id)
            self._publish(
                BookBorrowed(
                    book_id=result.book_id,
                    member_id=result.member_id,
                    transaction_id=result.id,
                    borrow_date=result.borrow_date,
                    due_date=result.due_date,
                )
            )
            return BorrowingTransaction.model_validate(result)

    def return_book(self, transaction_id: int) -> Result[BorrowingTransaction]:
        """
        Close an active loan, assess any late fine and shelve the copy.

        Only ``Active`` transactions can be returned; ``Returned`` and
        ``Overdue`` ones are rejected with ``BorrowingTransaction.NotActive``.
        """
        with trace_operation("lending", "return_book", transaction_id=transaction_id) as span:
            result = self._with_retries("return book", lambda: self._return(transaction_id))

            if isinstance(result, LendingError):
                span.set_attribute("outcome", result.code)
                logger.info(
                    "Return rejected: TransactionId=%s, Code=%s", transaction_id, result.code
                )
                return result

            span.set_attribute("fine_amount", str(result.fine_amount))
            self._publish(
                BookReturned(
                    book_id=result.book_id,
                    member_id=result.member_id,
                    transaction_id=result.id,
                    return_date=result.return_date,
                    fine_amount=result.fine_amount,
                    was_overdue=result.was_returned_late,
                )
            )
            return BorrowingTransaction.model_validate(result)

    def _borrow(self, book_id: int, member_id: int) -> TransactionDB | LendingError:
        book = self.books.get_for_update(book_id)
        if book is None:
            return self._reject(errors.book_not_found(book_id))

        member = self.members.get_for_update(member_id)
        if member is None:
            return self._reject(errors.member_not_found(member_id))

        if self.transactions.has_active_borrowing(book_id, member_id):
            return self._reject(errors.already_borrowed())

        transaction = TransactionDB.create(book, member, self.clock())
        if isinstance(transaction, LendingError):
            return self._reject(transaction)

        copy_error = book.borrow_copy()
        if copy_error is not None:
            return self._reject(copy_error)

        member.increment_active_borrowings()
        self.transactions.add(transaction)
        safe_commit(self.session, "borrow book")
        return transaction

    def _return(self, transaction_id: int) -> TransactionDB | LendingError:
        transaction = self.transactions.get_with_relations(transaction_id)
        if transaction is None:
            return self._reject(errors.transaction_not_found(transaction_id))

        return_error = transaction.complete_return(self.clock())
        if return_error is not None:
            return self._reject(return_error)

        copy_error = transaction.book.return_copy()
        if copy_error is not None:
            return self._reject(copy_error)

        transaction.member.decrement_active_borrowings()
        safe_commit(self.session, "return book")
        return transaction

    def _reject(self, error: LendingError) -> LendingError:
        # Drop any in-memory changes and release row locks
        self.session.rollback()
        return error

    def _with_retries[T](self, operation: str, attempt_fn: Callable[[], T]) -> T:
        for attempt in range(1, self.max_retries + 1):
            try:
                return attempt_fn()
            except ConcurrencyConflictError:
                if attempt == self.max_retries:
                    logger.error(
                        "Giving up on %s after %d concurrent updates", operation, attempt
                    )
                    raise
                logger.warning(
                    "Concurrent update during %s, retrying (attempt %d of %d)",
                    operation,
                    attempt,
                    self.max_retries,
                )
        raise AssertionError("unreachable")
