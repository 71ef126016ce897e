"""
MCP resources for the Library Lending Server.

Resources are the read side of the server: JSON projections of the catalog,
the registry and member borrowing histories.
"""

from .books import book_resources
from .members import member_resources

all_resources = book_resources + member_resources

__all__ = ["all_resources", "book_resources", "member_resources"]
