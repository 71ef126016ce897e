"""
Services for the Library Lending MCP Server.

- CatalogService: books
- RegistryService: members
- LendingService: the borrow and return flows
"""

from .catalog import CatalogService
from .lending import LendingService
from .registry import RegistryService

__all__ = ["CatalogService", "LendingService", "RegistryService"]
