"""
Member repository for the Library Lending MCP Server.

Backs the registry: email uniqueness, membership number allocation and the
projections behind library://members.
"""

from sqlalchemy import func, select

from ..models.member import Member as MemberModel
from ..models.member import MemberSummary
from .repository import BaseRepository
from .schema import Member as MemberDB
from .session import safe_query


class MemberRepository(BaseRepository[MemberDB, MemberModel]):
    """Repository for member data access."""

    @property
    def model_class(self):
        return MemberDB

    @property
    def response_schema(self):
        return MemberModel

    def _to_response_model(self, db_obj: MemberDB) -> MemberModel:
        # Borrowing policy fields are derived, not columns
        return MemberModel.from_entity(db_obj)

    def get_by_email(self, email: str) -> MemberDB | None:
        query = select(MemberDB).where(func.lower(MemberDB.email) == email.lower())
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            "Failed to get member by email",
        )

    def email_exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def next_membership_number(self, year: int) -> str:
        """
        Allocate the next membership number, ``MEM<year><seq>``.

        The sequence is the current member count plus one, zero-padded to
        four digits.
        """
        return f"MEM{year}{self.count() + 1:04d}"

    def list_summaries(self) -> list[MemberSummary]:
        """All members ordered by last name, then first name."""
        query = select(MemberDB).order_by(MemberDB.last_name, MemberDB.first_name, MemberDB.id)
        results = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            "Failed to list members",
        )
        return [MemberSummary.from_entity(member) for member in results]
