"""
Business-rule errors for the lending core.

Expected rule violations (a missing book, an exhausted borrowing limit, a
duplicate ISBN...) are returned as ``LendingError`` values rather than raised.
Each error carries a kind, a stable code and a human readable description so
the MCP surface can map it to a distinct status without the core knowing about
transport. Unexpected failures still raise ``RepositoryException`` from the
storage layer.
"""

import enum

from pydantic import BaseModel, ConfigDict


class ErrorKind(str, enum.Enum):
    """Category of a business-rule error."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"


# HTTP-equivalent status for each kind, used by the tool layer
STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.FORBIDDEN: 403,
}


class LendingError(BaseModel):
    """A business-rule violation returned by a core operation."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    code: str
    description: str

    @classmethod
    def not_found(cls, code: str, description: str) -> "LendingError":
        return cls(kind=ErrorKind.NOT_FOUND, code=code, description=description)

    @classmethod
    def conflict(cls, code: str, description: str) -> "LendingError":
        return cls(kind=ErrorKind.CONFLICT, code=code, description=description)

    @classmethod
    def forbidden(cls, code: str, description: str) -> "LendingError":
        return cls(kind=ErrorKind.FORBIDDEN, code=code, description=description)

    @property
    def status(self) -> int:
        return STATUS_BY_KIND[self.kind]


# Success value or the error that stopped the operation
type Result[T] = T | LendingError


def is_error(result: object) -> bool:
    """Check whether an operation result is a ``LendingError``."""
    return isinstance(result, LendingError)


# === Catalog ===


def book_not_found(book_id: int) -> LendingError:
    return LendingError.not_found("Book.NotFound", f"Book with ID {book_id} was not found")


def no_copies_available() -> LendingError:
    return LendingError.conflict("Book.NoCopiesAvailable", "No copies available to borrow")


def cannot_return_more() -> LendingError:
    return LendingError.conflict("Book.CannotReturnMore", "Cannot return more copies than total")


def isbn_already_exists() -> LendingError:
    return LendingError.conflict("Book.IsbnAlreadyExists", "A book with this ISBN already exists")


# === Registry ===


def member_not_found(member_id: int) -> LendingError:
    return LendingError.not_found("Member.NotFound", f"Member with ID {member_id} was not found")


def member_not_active() -> LendingError:
    return LendingError.forbidden("Member.NotActive", "Member account is not active")


def borrowing_limit_exceeded(limit: int) -> LendingError:
    return LendingError.conflict(
        "Member.BorrowingLimitExceeded", f"Member has reached borrowing limit of {limit}"
    )


def email_already_exists() -> LendingError:
    return LendingError.conflict(
        "Member.EmailAlreadyExists", "A member with this email already exists"
    )


# === Lending ===


def transaction_not_found(transaction_id: int) -> LendingError:
    return LendingError.not_found(
        "BorrowingTransaction.NotFound",
        f"Borrowing transaction with ID {transaction_id} was not found",
    )


def already_borrowed() -> LendingError:
    return LendingError.conflict(
        "BorrowingTransaction.AlreadyBorrowed", "Member has already borrowed this book"
    )


def book_not_available() -> LendingError:
    return LendingError.conflict(
        "BorrowingTransaction.BookNotAvailable", "Book is not available for borrowing"
    )


def transaction_not_active() -> LendingError:
    return LendingError.conflict(
        "BorrowingTransaction.NotActive", "Transaction is not in active status"
    )
