"""
SQLAlchemy database schema for the Library Lending MCP Server.

Three tables back the lending core:

- ``books``: the catalog, with cached copy counters
- ``members``: the registry, with a cached active-loan counter
- ``borrowing_transactions``: the borrow/return ledger

The invariant-bearing behaviour lives on the mapped classes themselves
(``Book.borrow_copy``, ``Member.can_borrow``, ``BorrowingTransaction.create``
...). These methods only mutate in-memory state and report rule violations as
``LendingError`` values; persisting the result is the caller's unit of work.

Books and members carry a ``version`` column used by SQLAlchemy's optimistic
concurrency check, so two sessions racing for the last copy cannot both
commit.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from .. import errors
from ..errors import LendingError
from ..rules import (
    BookStatusEnum,
    BorrowingStatusEnum,
    MembershipTypeEnum,
    calculate_fine,
    policy_for,
)

Base = declarative_base()


class Book(Base):
    """
    Books table - the library catalog.

    ``available_copies`` and ``status`` are cached counters that only the
    lending engine mutates, through ``borrow_copy`` and ``return_copy``.
    """

    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    isbn = Column(String(20), nullable=False, unique=True)
    title = Column(String(200), nullable=False)
    author = Column(String(100), nullable=False)
    publisher = Column(String(100), nullable=False)
    publication_year = Column(Integer, nullable=False)
    genre = Column(String(50), nullable=False)
    total_copies = Column(Integer, nullable=False)
    available_copies = Column(Integer, nullable=False)
    status = Column(Enum(BookStatusEnum), nullable=False, default=BookStatusEnum.AVAILABLE)
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    transactions = relationship("BorrowingTransaction", back_populates="book")

    __table_args__ = (
        Index("idx_book_title", "title"),
        Index("idx_book_author", "author"),
        Index("idx_book_status", "status"),
        CheckConstraint("available_copies >= 0", name="check_available_copies_non_negative"),
        CheckConstraint(
            "available_copies <= total_copies", name="check_available_not_exceed_total"
        ),
        CheckConstraint("total_copies > 0", name="check_total_copies_positive"),
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_available(self) -> bool:
        """Check if the book has any available copies."""
        return self.available_copies > 0

    @property
    def borrowed_copies(self) -> int:
        return self.total_copies - self.available_copies

    def borrow_copy(self) -> LendingError | None:
        """Take one copy off the shelf."""
        if not self.is_available:
            return errors.no_copies_available()

        self.available_copies -= 1
        self.status = (
            BookStatusEnum.ALL_BORROWED if self.available_copies == 0 else BookStatusEnum.AVAILABLE
        )
        return None

    def return_copy(self) -> LendingError | None:
        """Put one copy back on the shelf."""
        if self.available_copies >= self.total_copies:
            return errors.cannot_return_more()

        self.available_copies += 1
        self.status = BookStatusEnum.AVAILABLE
        return None


class Member(Base):
    """
    Members table - the library registry.

    ``active_borrowings_count`` is a cached counter of active loans, updated
    by the lending engine in the same unit of work as the transaction.
    """

    __tablename__ = "members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    membership_number = Column(String(20), nullable=False, unique=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(100), nullable=False, unique=True)
    phone = Column(String(20), nullable=False)
    address = Column(String(200), nullable=False)
    membership_type = Column(Enum(MembershipTypeEnum), nullable=False)
    registration_date = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    active_borrowings_count = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    transactions = relationship("BorrowingTransaction", back_populates="member")

    __table_args__ = (
        Index("idx_member_email", "email"),
        Index("idx_member_type", "membership_type"),
        CheckConstraint(
            "active_borrowings_count >= 0", name="check_active_borrowings_non_negative"
        ),
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def get_borrowing_limit(self) -> int:
        return policy_for(self.membership_type).borrowing_limit

    def get_loan_period_days(self) -> int:
        return policy_for(self.membership_type).loan_period_days

    def can_borrow(self) -> LendingError | None:
        """Check membership status and the borrowing limit."""
        if not self.is_active:
            return errors.member_not_active()

        limit = self.get_borrowing_limit()
        if self.active_borrowings_count >= limit:
            return errors.borrowing_limit_exceeded(limit)

        return None

    def increment_active_borrowings(self) -> None:
        self.active_borrowings_count += 1

    def decrement_active_borrowings(self) -> None:
        # Floors at zero rather than failing
        if self.active_borrowings_count > 0:
            self.active_borrowings_count -= 1

    def activate(self) -> None:
        self.is_active = True

    def deactivate(self) -> None:
        self.is_active = False


class BorrowingTransaction(Base):
    """
    Borrowing transactions table - the loan ledger.

    Rows are only created by ``BorrowingTransaction.create`` and only changed
    by ``complete_return`` (or ``mark_as_overdue``). A returned transaction is
    never modified again.
    """

    __tablename__ = "borrowing_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    book_id = Column(Integer, ForeignKey("books.id"), nullable=False)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False)
    borrow_date = Column(DateTime, nullable=False)
    due_date = Column(DateTime, nullable=False)
    return_date = Column(DateTime, nullable=True)
    status = Column(
        Enum(BorrowingStatusEnum), nullable=False, default=BorrowingStatusEnum.ACTIVE
    )
    fine_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    book = relationship("Book", back_populates="transactions")
    member = relationship("Member", back_populates="transactions")

    __table_args__ = (
        Index("idx_transaction_book_member_status", "book_id", "member_id", "status"),
        Index("idx_transaction_member", "member_id"),
        Index("idx_transaction_status", "status"),
        CheckConstraint("fine_amount >= 0", name="check_fine_non_negative"),
    )

    @classmethod
    def create(
        cls, book: Book, member: Member, now: datetime
    ) -> "BorrowingTransaction | LendingError":
        """
        Build a new active loan after checking the member and the book.

        The member's own error (not active, limit reached) is passed through
        unchanged. Neither entity is mutated here.
        """
        member_error = member.can_borrow()
        if member_error is not None:
            return member_error

        if not book.is_available:
            return errors.book_not_available()

        return cls(
            book=book,
            member=member,
            borrow_date=now,
            due_date=now + timedelta(days=member.get_loan_period_days()),
            status=BorrowingStatusEnum.ACTIVE,
            fine_amount=Decimal("0.00"),
        )

    def complete_return(self, now: datetime) -> LendingError | None:
        """Close an active loan and assess the late fine, if any."""
        if self.status != BorrowingStatusEnum.ACTIVE:
            return errors.transaction_not_active()

        self.return_date = now
        self.status = BorrowingStatusEnum.RETURNED

        if self.was_returned_late:
            overdue_days = (now - self.due_date).days
            self.fine_amount = calculate_fine(overdue_days)

        return None

    def mark_as_overdue(self, now: datetime) -> None:
        """Flag an active loan that is past its due date."""
        if self.status == BorrowingStatusEnum.ACTIVE and now > self.due_date:
            self.status = BorrowingStatusEnum.OVERDUE

    @property
    def was_returned_late(self) -> bool:
        return self.return_date is not None and self.return_date > self.due_date

    def is_overdue(self, now: datetime) -> bool:
        return self.status == BorrowingStatusEnum.ACTIVE and now > self.due_date

    def overdue_days(self, now: datetime) -> int:
        if not self.is_overdue(now):
            return 0
        return (now - self.due_date).days
