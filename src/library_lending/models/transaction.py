"""
Borrowing transaction models for the Library Lending MCP Server.

- BorrowingTransaction: the ledger row returned by borrow/return
- TransactionHistoryEntry: the projection behind
  library://members/{member_id}/history, joined with book and member data
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from ..rules import BorrowingStatusEnum


class BorrowBookInput(BaseModel):
    """Input for lending a book to a member."""

    book_id: PositiveInt = Field(..., description="ID of the book to borrow", examples=[1, 42])
    member_id: PositiveInt = Field(..., description="ID of the borrowing member", examples=[7])


class ReturnBookInput(BaseModel):
    """Input for returning a borrowed book."""

    transaction_id: PositiveInt = Field(
        ..., description="ID of the borrowing transaction", examples=[15]
    )


class BorrowingTransaction(BaseModel):
    """Loan record as exposed to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    book_id: int
    member_id: int
    borrow_date: datetime
    due_date: datetime
    return_date: datetime | None = None
    status: BorrowingStatusEnum
    fine_amount: Decimal = Field(..., ge=0)

    @property
    def loan_period_days(self) -> int:
        return (self.due_date - self.borrow_date).days


class TransactionHistoryEntry(BaseModel):
    """One row of a member's borrowing history."""

    id: int
    book_id: int
    book_title: str
    book_author: str
    member_id: int
    member_name: str
    membership_number: str
    borrow_date: datetime
    due_date: datetime
    return_date: datetime | None = None
    status: BorrowingStatusEnum
    fine_amount: Decimal
    is_overdue: bool
    days_overdue: int

    @classmethod
    def from_entity(cls, transaction, now: datetime) -> "TransactionHistoryEntry":
        """Project a ``database.schema.BorrowingTransaction`` with its book and member."""
        return cls(
            id=transaction.id,
            book_id=transaction.book_id,
            book_title=transaction.book.title,
            book_author=transaction.book.author,
            member_id=transaction.member_id,
            member_name=transaction.member.full_name,
            membership_number=transaction.member.membership_number,
            borrow_date=transaction.borrow_date,
            due_date=transaction.due_date,
            return_date=transaction.return_date,
            status=transaction.status,
            fine_amount=transaction.fine_amount,
            is_overdue=transaction.is_overdue(now),
            days_overdue=transaction.overdue_days(now),
        )
