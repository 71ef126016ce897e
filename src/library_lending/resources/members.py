"""Member Resources - Library Registry Access

Exposes member records and borrowing history.

Resources:
- library://members - All members
- library://members/{member_id} - Individual member details
- library://members/{member_id}/history - Borrowing history, most recent first
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError

from ..database.session import session_scope
from ..errors import LendingError
from ..rules import BorrowingStatusEnum
from ..services.registry import RegistryService

logger = logging.getLogger(__name__)


def _parse_member_id(member_id: str) -> int:
    try:
        return int(member_id)
    except ValueError as e:
        raise ResourceError(f"Invalid member ID: {member_id}") from e


async def list_members_handler() -> dict[str, Any]:
    """Returns all members as summaries."""
    try:
        with session_scope() as session:
            members = RegistryService(session).list_members()
            return {
                "members": [member.model_dump(mode="json") for member in members],
                "total": len(members),
            }
    except Exception as e:
        logger.exception("Error in members resource")
        raise ResourceError(f"Failed to retrieve member list: {e!s}") from e


async def get_member_handler(member_id: str) -> dict[str, Any]:
    """Returns details for one member, including their borrowing policy."""
    try:
        parsed_id = _parse_member_id(member_id)
        with session_scope() as session:
            result = RegistryService(session).get_member(parsed_id)

        if isinstance(result, LendingError):
            raise ResourceError(result.description)
        return result.model_dump(mode="json")

    except ResourceError:
        raise
    except Exception as e:
        logger.exception("Error in members/{member_id} resource")
        raise ResourceError(f"Failed to retrieve member details: {e!s}") from e


async def get_member_history_handler(member_id: str) -> dict[str, Any]:
    """Returns every transaction of a member with book details and overdue state."""
    try:
        parsed_id = _parse_member_id(member_id)
        with session_scope() as session:
            result = RegistryService(session).get_member_history(parsed_id)

        if isinstance(result, LendingError):
            raise ResourceError(result.description)

        active = [entry for entry in result if entry.status == BorrowingStatusEnum.ACTIVE]
        return {
            "member_id": parsed_id,
            "transactions": [entry.model_dump(mode="json") for entry in result],
            "total": len(result),
            "active_count": len(active),
            "overdue_count": sum(1 for entry in active if entry.is_overdue),
        }

    except ResourceError:
        raise
    except Exception as e:
        logger.exception("Error in members/{member_id}/history resource")
        raise ResourceError(f"Failed to retrieve member history: {e!s}") from e


member_resources: list[dict[str, Any]] = [
    {
        "uri": "library://members",
        "name": "Member Registry",
        "description": "All library members with membership type and active loan count.",
        "mime_type": "application/json",
        "handler": list_members_handler,
    },
    {
        "uri_template": "library://members/{member_id}",
        "name": "Member Details",
        "description": "Member details including borrowing limit and loan period",
        "mime_type": "application/json",
        "handler": get_member_handler,
    },
    {
        "uri_template": "library://members/{member_id}/history",
        "name": "Member Borrowing History",
        "description": "All borrowing transactions of a member, most recent first",
        "mime_type": "application/json",
        "handler": get_member_history_handler,
    },
]
