"""
Database package for the Library Lending MCP Server.

This package provides:
- SQLAlchemy schema definitions (schema.py)
- Session management and the unit-of-work helpers (session.py)
- Repositories for books, members and borrowing transactions
"""

from .book_repository import BookRepository
from .member_repository import MemberRepository
from .repository import (
    BaseRepository,
    ConcurrencyConflictError,
    DuplicateError,
    RepositoryException,
)
from .schema import Base, Book, BorrowingTransaction, Member
from .session import (
    DatabaseManager,
    get_db_manager,
    get_session,
    reset_db_manager,
    safe_commit,
    safe_query,
    session_scope,
)
from .transaction_repository import TransactionRepository

__all__ = [
    "Base",
    "BaseRepository",
    "Book",
    "BookRepository",
    "BorrowingTransaction",
    "ConcurrencyConflictError",
    "DatabaseManager",
    "DuplicateError",
    "Member",
    "MemberRepository",
    "RepositoryException",
    "TransactionRepository",
    "get_db_manager",
    "get_session",
    "reset_db_manager",
    "safe_commit",
    "safe_query",
    "session_scope",
]
