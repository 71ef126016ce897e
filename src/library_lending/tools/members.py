"""
Member tools: registration and account activation.

Registration assigns the next membership number and raises a
MemberRegistered event once committed.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, PositiveInt, ValidationError

from ..database.session import get_session
from ..errors import LendingError
from ..events import get_event_publisher
from ..models.member import Member, MemberRegister
from ..observability import trace_tool
from ..services.registry import RegistryService
from .responses import (
    error_response,
    success_response,
    unexpected_error_response,
    validation_error_response,
)

logger = logging.getLogger(__name__)


class MemberIdInput(BaseModel):
    """Input for tools acting on a single member."""

    member_id: PositiveInt = Field(..., description="ID of the member", examples=[7])


def _member_data(member: Member) -> dict[str, Any]:
    return {"member": member.model_dump(mode="json")}


@trace_tool("register_member")
async def register_member_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Register a new library member.

    Client calls: tool.call("register_member", {"first_name": "...", "email": "...", ...})
    """
    try:
        params = MemberRegister.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid register_member parameters: %s", e)
        return validation_error_response(e, "register_member")

    try:
        with get_session() as session:
            result = RegistryService(session, get_event_publisher()).register_member(params)
    except Exception:
        logger.exception("Unexpected error in register_member tool")
        return unexpected_error_response()

    if isinstance(result, LendingError):
        return error_response(result)

    return success_response(
        f"Registered {result.full_name} as {result.membership_type.value} member "
        f"{result.membership_number}. Borrowing limit: {result.borrowing_limit} books, "
        f"loan period: {result.loan_period_days} days.",
        _member_data(result),
    )


async def _set_member_active(arguments: dict[str, Any], active: bool) -> dict[str, Any]:
    tool_name = "activate_member" if active else "deactivate_member"
    try:
        params = MemberIdInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid %s parameters: %s", tool_name, e)
        return validation_error_response(e, tool_name)

    try:
        with get_session() as session:
            service = RegistryService(session)
            if active:
                result = service.activate_member(params.member_id)
            else:
                result = service.deactivate_member(params.member_id)
    except Exception:
        logger.exception("Unexpected error in %s tool", tool_name)
        return unexpected_error_response()

    if isinstance(result, LendingError):
        return error_response(result)

    state = "active" if active else "inactive"
    return success_response(
        f"Member {result.membership_number} ({result.full_name}) is now {state}.",
        _member_data(result),
    )


@trace_tool("activate_member")
async def activate_member_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Re-enable borrowing for a member."""
    return await _set_member_active(arguments, active=True)


@trace_tool("deactivate_member")
async def deactivate_member_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Block a member from borrowing; existing loans can still be returned."""
    return await _set_member_active(arguments, active=False)


register_member = {
    "name": "register_member",
    "description": (
        "Register a library member. Membership type (student, adult, senior, staff) "
        "sets the borrowing limit and loan period. Fails if the email is already registered."
    ),
    "inputSchema": MemberRegister.model_json_schema(),
    "handler": register_member_handler,
}

activate_member = {
    "name": "activate_member",
    "description": "Activate a member account so the member can borrow again.",
    "inputSchema": MemberIdInput.model_json_schema(),
    "handler": activate_member_handler,
}

deactivate_member = {
    "name": "deactivate_member",
    "description": (
        "Deactivate a member account. Inactive members cannot borrow but can return books."
    ),
    "inputSchema": MemberIdInput.model_json_schema(),
    "handler": deactivate_member_handler,
}
