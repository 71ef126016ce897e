"""Library Lending MCP Server.

A book catalog, a member registry and the borrow/return transaction ledger,
exposed as MCP tools and resources.
"""

__version__ = "0.1.0"
