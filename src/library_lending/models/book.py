"""
Book models for the Library Lending MCP Server.

``BookCreate`` validates catalog input before it reaches the core;
``Book`` is the read model returned by tools and resources, e.g.
- library://books
- library://books/{book_id}
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..rules import BookStatusEnum

# ISBN-10 (optionally ending in X) or ISBN-13, with optional hyphens or spaces
ISBN_PATTERN = re.compile(r"^(?:\d{9}[\dX]|97[89]\d{10})$")


def normalize_isbn(value: str) -> str:
    """Strip hyphens, spaces and an optional ``ISBN`` prefix."""
    cleaned = value.strip().upper()
    cleaned = re.sub(r"^ISBN(?:-1[03])?:?\s*", "", cleaned)
    return cleaned.replace("-", "").replace(" ", "")


def current_year() -> int:
    return datetime.now().year


class BookCreate(BaseModel):
    """Input for adding a title to the catalog."""

    isbn: str = Field(
        ...,
        description="ISBN-10 or ISBN-13, hyphens allowed",
        examples=["978-0-134-68547-9", "0306406152"],
    )

    title: str = Field(..., min_length=1, max_length=200, examples=["The Great Gatsby"])

    author: str = Field(..., min_length=1, max_length=100, examples=["F. Scott Fitzgerald"])

    publisher: str = Field(..., min_length=1, max_length=100, examples=["Scribner"])

    publication_year: int = Field(..., gt=1000, examples=[1925, 1960, 2023])

    genre: str = Field(..., min_length=1, max_length=50, examples=["Fiction", "Biography"])

    total_copies: int = Field(..., gt=0, le=1000, examples=[1, 3, 10])

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str) -> str:
        """Normalize the ISBN and check its shape."""
        normalized = normalize_isbn(v)
        if not ISBN_PATTERN.match(normalized):
            raise ValueError("ISBN must be a valid ISBN-10 or ISBN-13")
        return normalized

    @field_validator("publication_year")
    @classmethod
    def validate_publication_year(cls, v: int) -> int:
        if v > current_year():
            raise ValueError("Publication year cannot be in the future")
        return v


class Book(BaseModel):
    """Catalog entry as exposed to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    isbn: str
    title: str
    author: str
    publisher: str
    publication_year: int
    genre: str
    total_copies: int = Field(..., ge=1)
    available_copies: int = Field(..., ge=0)
    status: BookStatusEnum
    is_available: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BookSummary(BaseModel):
    """Compact catalog row for listings and search results."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    isbn: str
    title: str
    author: str
    genre: str
    total_copies: int
    available_copies: int
    status: BookStatusEnum
    is_available: bool
