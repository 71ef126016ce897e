"""
Borrowing transaction repository for the Library Lending MCP Server.

Queries the loan ledger for the lending engine (the active-pair check, the
transaction with its book and member) and for the member history resource.
"""

from sqlalchemy import desc, func, select
from sqlalchemy.orm import joinedload

from ..models.transaction import BorrowingTransaction as TransactionModel
from ..rules import BorrowingStatusEnum
from .repository import BaseRepository
from .schema import BorrowingTransaction as TransactionDB
from .session import safe_query


class TransactionRepository(BaseRepository[TransactionDB, TransactionModel]):
    """Repository for borrowing transaction data access."""

    @property
    def model_class(self):
        return TransactionDB

    @property
    def response_schema(self):
        return TransactionModel

    def has_active_borrowing(self, book_id: int, member_id: int) -> bool:
        """Check for an Active transaction on this (book, member) pair."""
        query = (
            select(func.count())
            .select_from(TransactionDB)
            .where(
                TransactionDB.book_id == book_id,
                TransactionDB.member_id == member_id,
                TransactionDB.status == BorrowingStatusEnum.ACTIVE,
            )
        )
        count = safe_query(
            self.session, lambda s: s.execute(query).scalar(), "Failed to check active borrowing"
        )
        return bool(count)

    def get_with_relations(self, transaction_id: int) -> TransactionDB | None:
        """Load a transaction together with its book and member."""
        query = (
            select(TransactionDB)
            .where(TransactionDB.id == transaction_id)
            .options(joinedload(TransactionDB.book), joinedload(TransactionDB.member))
        )
        return safe_query(
            self.session,
            lambda s: s.execute(query).unique().scalar_one_or_none(),
            "Failed to get transaction",
        )

    def get_member_history(self, member_id: int) -> list[TransactionDB]:
        """All transactions of a member, most recent borrow first."""
        query = (
            select(TransactionDB)
            .where(TransactionDB.member_id == member_id)
            .order_by(desc(TransactionDB.borrow_date), desc(TransactionDB.id))
            .options(joinedload(TransactionDB.book), joinedload(TransactionDB.member))
        )
        return list(
            safe_query(
                self.session,
                lambda s: s.execute(query).unique().scalars().all(),
                "Failed to get member history",
            )
        )
