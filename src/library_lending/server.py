"""Library Lending MCP Server - FastMCP Implementation

Exposes the lending core over the Model Context Protocol.

Features exposed:
- Resources: book catalog, book search, member registry, borrowing history
- Tools: create_book, register_member, activate/deactivate_member,
  borrow_book, return_book
"""

import logging
import signal
import sys
from typing import Any

from fastmcp import FastMCP

from .config import LendingConfig, get_config
from .database.session import get_db_manager
from .observability import initialize_observability
from .resources import all_resources
from .tools import all_tools

# stderr for logs, stdout for MCP protocol
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)

logger = logging.getLogger(__name__)


def create_server(config: LendingConfig | None = None) -> FastMCP:
    """Build the FastMCP server with every resource and tool registered."""
    config = config or get_config()

    mcp = FastMCP(
        name=config.server_name,
        version=config.server_version,
        instructions=(
            "Library Lending MCP Server - manages a book catalog, a member registry and "
            "the borrow/return ledger. Use resources to browse books, members and "
            "borrowing history; use tools to add books, register members, and borrow "
            "or return books."
        ),
    )

    for resource in all_resources:
        uri = resource.get("uri_template", resource.get("uri"))
        logger.debug("Registering resource: %s with URI: %s", resource["name"], uri)
        mcp.resource(
            uri=uri,
            name=resource["name"],
            description=resource["description"],
            mime_type=resource["mime_type"],
        )(resource["handler"])

    logger.info("Registered %d resources", len(all_resources))

    for tool in all_tools:
        logger.debug("Registering tool: %s", tool["name"])
        mcp.tool(
            name=tool["name"],
            description=tool["description"],
        )(tool["handler"])

    logger.info("Registered %d tools", len(all_tools))
    return mcp


def run_server(config: LendingConfig) -> None:
    """Run the MCP server on the configured transport.

    Stdio reads JSON-RPC requests from stdin and writes responses to stdout;
    streamable HTTP listens on ``http_host:http_port``.
    """
    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled - verbose protocol logging active")
    else:
        logging.getLogger().setLevel(config.log_level)
        logging.getLogger("fastmcp").setLevel(logging.WARNING)

    db_manager = get_db_manager()
    db_manager.init_database()
    if not db_manager.verify_connection():
        logger.error("Database is not reachable, refusing to start")
        sys.exit(1)

    mcp = create_server(config)

    def signal_handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, initiating shutdown...", signum)
        db_manager.close()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        logger.info("MCP Server ready and waiting for connections...")
        if config.transport == "stdio":
            mcp.run(transport="stdio")
        else:
            mcp.run(transport="streamable-http", host=config.http_host, port=config.http_port)
    except Exception:
        logger.exception("Fatal error in MCP server")
        sys.exit(1)
    finally:
        db_manager.close()


def main() -> None:
    """Main entry point for the MCP server."""
    try:
        config = get_config()
        initialize_observability()

        logger.info("=" * 60)
        logger.info("Library Lending MCP Server")
        logger.info("Version: %s", config.server_version)
        logger.info("Transport: %s", config.transport)
        logger.info("Debug Mode: %s", config.debug)
        logger.info("=" * 60)

        run_server(config)

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Failed to start MCP server")
        sys.exit(1)


if __name__ == "__main__":
    main()
