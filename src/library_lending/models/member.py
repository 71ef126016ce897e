"""
Member models for the Library Lending MCP Server.

``MemberRegister`` validates registration input; ``Member`` is the read model
for library://members resources and tool responses. The read model carries
the derived full name and the borrowing policy of the member's type so
clients don't have to know the policy table.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..rules import MembershipTypeEnum


class MemberRegister(BaseModel):
    """Input for registering a new member."""

    first_name: str = Field(..., min_length=1, max_length=50, examples=["Jane"])

    last_name: str = Field(..., min_length=1, max_length=50, examples=["Doe"])

    email: EmailStr = Field(..., max_length=100, examples=["jane.doe@example.com"])

    phone: str = Field(
        ...,
        description="Phone number, digits with optional leading +",
        pattern=r"^\+?[\d\s\-\(\)]{6,20}$",
        examples=["+212612345678", "0612345678"],
    )

    address: str = Field(..., min_length=1, max_length=200, examples=["12 Rue Atlas, Rabat"])

    membership_type: MembershipTypeEnum = Field(
        default=MembershipTypeEnum.ADULT,
        description="Membership class; determines borrowing limit and loan period",
    )

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, v: str) -> str:
        """Drop common formatting characters, keeping a leading +."""
        return v.replace("-", "").replace(" ", "").replace("(", "").replace(")", "")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class Member(BaseModel):
    """Registry entry as exposed to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    membership_number: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: str
    address: str
    membership_type: MembershipTypeEnum
    registration_date: datetime
    is_active: bool
    active_borrowings_count: int = Field(..., ge=0)
    borrowing_limit: int
    loan_period_days: int

    @classmethod
    def from_entity(cls, member) -> "Member":
        """Build the read model from a ``database.schema.Member`` row."""
        return cls(
            id=member.id,
            membership_number=member.membership_number,
            first_name=member.first_name,
            last_name=member.last_name,
            full_name=member.full_name,
            email=member.email,
            phone=member.phone,
            address=member.address,
            membership_type=member.membership_type,
            registration_date=member.registration_date,
            is_active=member.is_active,
            active_borrowings_count=member.active_borrowings_count,
            borrowing_limit=member.get_borrowing_limit(),
            loan_period_days=member.get_loan_period_days(),
        )


class MemberSummary(BaseModel):
    """Compact registry row for listings."""

    id: int
    membership_number: str
    full_name: str
    email: str
    membership_type: MembershipTypeEnum
    is_active: bool
    active_borrowings_count: int
    borrowing_limit: int
    loan_period_days: int

    @classmethod
    def from_entity(cls, member) -> "MemberSummary":
        return cls(
            id=member.id,
            membership_number=member.membership_number,
            full_name=member.full_name,
            email=member.email,
            membership_type=member.membership_type,
            is_active=member.is_active,
            active_borrowings_count=member.active_borrowings_count,
            borrowing_limit=member.get_borrowing_limit(),
            loan_period_days=member.get_loan_period_days(),
        )
