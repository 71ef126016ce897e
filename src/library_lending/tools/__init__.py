"""
MCP tools for the Library Lending Server.

Tools are the write side of the server: each one validates its input,
runs one service operation in its own session and returns a structured
result or error.
"""

from .catalog import create_book
from .circulation import borrow_book, return_book
from .members import activate_member, deactivate_member, register_member

all_tools = [
    create_book,
    register_member,
    activate_member,
    deactivate_member,
    borrow_book,
    return_book,
]

__all__ = [
    "activate_member",
    "all_tools",
    "borrow_book",
    "create_book",
    "deactivate_member",
    "register_member",
    "return_book",
]
