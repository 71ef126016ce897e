"""
Lending rules shared by the storage schema and the read models.

Membership types map to a borrowing limit and a loan period:

| Type    | Limit | Loan period (days) |
|---------|-------|--------------------|
| Student | 3     | 14                 |
| Adult   | 5     | 21                 |
| Senior  | 5     | 21                 |
| Staff   | 10    | 30                 |

Late returns are fined a flat 2.00 per full day past the due date.
"""

import enum
from decimal import Decimal
from typing import NamedTuple


class BookStatusEnum(str, enum.Enum):
    """Availability status of a catalog entry."""

    AVAILABLE = "available"
    ALL_BORROWED = "all_borrowed"
    DAMAGED = "damaged"
    LOST = "lost"


class MembershipTypeEnum(str, enum.Enum):
    """Membership classes; each maps to a borrowing policy."""

    STUDENT = "student"
    ADULT = "adult"
    SENIOR = "senior"
    STAFF = "staff"


class BorrowingStatusEnum(str, enum.Enum):
    """Lifecycle status of a borrowing transaction."""

    ACTIVE = "active"
    RETURNED = "returned"
    OVERDUE = "overdue"


class MembershipPolicy(NamedTuple):
    borrowing_limit: int
    loan_period_days: int


MEMBERSHIP_POLICIES: dict[MembershipTypeEnum, MembershipPolicy] = {
    MembershipTypeEnum.STUDENT: MembershipPolicy(borrowing_limit=3, loan_period_days=14),
    MembershipTypeEnum.ADULT: MembershipPolicy(borrowing_limit=5, loan_period_days=21),
    MembershipTypeEnum.SENIOR: MembershipPolicy(borrowing_limit=5, loan_period_days=21),
    MembershipTypeEnum.STAFF: MembershipPolicy(borrowing_limit=10, loan_period_days=30),
}

# Unknown membership types fall back to the Adult policy.
# TODO: decide the policy for any new membership tier before adding it to the enum.
DEFAULT_MEMBERSHIP_POLICY = MEMBERSHIP_POLICIES[MembershipTypeEnum.ADULT]

DAILY_FINE_RATE = Decimal("2.00")


def policy_for(membership_type: MembershipTypeEnum | None) -> MembershipPolicy:
    """Look up the borrowing policy for a membership type."""
    return MEMBERSHIP_POLICIES.get(membership_type, DEFAULT_MEMBERSHIP_POLICY)


def calculate_fine(overdue_days: int) -> Decimal:
    """Flat per-day fine, no cap."""
    return (DAILY_FINE_RATE * overdue_days).quantize(Decimal("0.01"))
