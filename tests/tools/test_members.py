"""Tests for the register_member, activate_member and deactivate_member tools."""

import pytest

from library_lending.events import MemberRegistered, get_event_publisher
from library_lending.tools.members import (
    activate_member_handler,
    deactivate_member_handler,
    register_member_handler,
)

pytestmark = pytest.mark.mcp_tools

MEMBER = {
    "first_name": "Nadia",
    "last_name": "Tazi",
    "email": "nadia.tazi@readers.org",
    "phone": "0612345678",
    "address": "5 Avenue Hassan II, Marrakech",
    "membership_type": "staff",
}


async def test_register_member(db_manager):
    seen = []
    get_event_publisher().subscribe(MemberRegistered, seen.append)

    result = await register_member_handler(MEMBER)

    assert not result.get("isError")
    member = result["data"]["member"]
    assert member["membership_number"].startswith("MEM")
    assert member["membership_number"].endswith("0001")
    assert member["borrowing_limit"] == 10
    assert member["loan_period_days"] == 30
    assert "Borrowing limit: 10 books" in result["content"][0]["text"]
    assert seen[0].member_id == member["id"]


async def test_duplicate_email(db_manager):
    await register_member_handler(MEMBER)

    result = await register_member_handler({**MEMBER, "email": "NADIA.TAZI@readers.org"})

    assert result["error"]["code"] == "Member.EmailAlreadyExists"


async def test_unknown_field_is_rejected(db_manager):
    result = await register_member_handler({**MEMBER, "nickname": "nad"})

    assert result["error"]["status"] == 400


async def test_deactivate_then_activate(db_manager):
    registered = await register_member_handler(MEMBER)
    member_id = registered["data"]["member"]["id"]

    deactivated = await deactivate_member_handler({"member_id": member_id})
    assert deactivated["data"]["member"]["is_active"] is False
    assert "is now inactive" in deactivated["content"][0]["text"]

    activated = await activate_member_handler({"member_id": member_id})
    assert activated["data"]["member"]["is_active"] is True


async def test_deactivate_unknown_member(db_manager):
    result = await deactivate_member_handler({"member_id": 404})

    assert result["error"]["code"] == "Member.NotFound"
    assert result["error"]["status"] == 404
