"""
Registry service: member registration, lookup and activation.

Membership numbers are allocated as ``MEM<year><seq>``, where the sequence
is the member count plus one at registration time.
"""

import logging

from .. import errors
from ..database.member_repository import MemberRepository
from ..database.repository import DuplicateError
from ..database.schema import Member as MemberDB
from ..database.session import safe_commit
from ..database.transaction_repository import TransactionRepository
from ..errors import Result
from ..events import MemberRegistered
from ..models.member import Member, MemberRegister, MemberSummary
from ..models.transaction import TransactionHistoryEntry
from ..observability import trace_operation
from .base import Service

logger = logging.getLogger(__name__)


class RegistryService(Service):
    """Operations on Member entities."""

    @property
    def members(self) -> MemberRepository:
        return MemberRepository(self.session)

    def register_member(self, data: MemberRegister) -> Result[Member]:
        with trace_operation("registry", "register_member") as span:
            if self.members.email_exists(data.email):
                span.set_attribute("outcome", "Member.EmailAlreadyExists")
                return errors.email_already_exists()

            now = self.clock()
            member = MemberDB(
                **data.model_dump(),
                membership_number=self.members.next_membership_number(now.year),
                registration_date=now,
                is_active=True,
                active_borrowings_count=0,
            )
            self.members.add(member)

            try:
                safe_commit(self.session, "register member")
            except DuplicateError:
                if not self.members.email_exists(data.email):
                    raise
                span.set_attribute("outcome", "Member.EmailAlreadyExists")
                return errors.email_already_exists()

            span.set_attribute("member_id", member.id)
            self._publish(
                MemberRegistered(
                    member_id=member.id,
                    membership_number=member.membership_number,
                    email=member.email,
                    full_name=member.full_name,
                )
            )
            return Member.from_entity(member)

    def get_member(self, member_id: int) -> Result[Member]:
        member = self.members.get_by_id(member_id)
        if member is None:
            return errors.member_not_found(member_id)
        return member

    def list_members(self) -> list[MemberSummary]:
        return self.members.list_summaries()

    def get_member_history(self, member_id: int) -> Result[list[TransactionHistoryEntry]]:
        """Borrowing history of a member, most recent first."""
        if not self.members.exists(member_id):
            return errors.member_not_found(member_id)

        now = self.clock()
        history = TransactionRepository(self.session).get_member_history(member_id)
        return [TransactionHistoryEntry.from_entity(t, now) for t in history]

    def activate_member(self, member_id: int) -> Result[Member]:
        return self._set_active(member_id, active=True)

    def deactivate_member(self, member_id: int) -> Result[Member]:
        return self._set_active(member_id, active=False)

    def _set_active(self, member_id: int, active: bool) -> Result[Member]:
        operation = "activate_member" if active else "deactivate_member"
        with trace_operation("registry", operation, member_id=member_id) as span:
            member = self.members.get_for_update(member_id)
            if member is None:
                self.session.rollback()
                span.set_attribute("outcome", "Member.NotFound")
                return errors.member_not_found(member_id)

            if active:
                member.activate()
            else:
                member.deactivate()
            safe_commit(self.session, operation.replace("_", " "))

            logger.info("Member %s: MemberId=%s", "activated" if active else "deactivated", member_id)
            return Member.from_entity(member)
