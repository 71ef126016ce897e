"""
Library Lending Models.

Pydantic models for the read side and the validated inputs of the server:

- Book / BookCreate / BookSummary: catalog entries
- Member / MemberRegister / MemberSummary: registry entries
- BorrowingTransaction / TransactionHistoryEntry: the loan ledger
"""

from .book import Book, BookCreate, BookSummary
from .member import Member, MemberRegister, MemberSummary
from .transaction import (
    BorrowBookInput,
    BorrowingTransaction,
    ReturnBookInput,
    TransactionHistoryEntry,
)

__all__ = [
    "Book",
    "BookCreate",
    "BookSummary",
    "BorrowBookInput",
    "BorrowingTransaction",
    "Member",
    "MemberRegister",
    "MemberSummary",
    "ReturnBookInput",
    "TransactionHistoryEntry",
]
