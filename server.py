"""
MCP Server Entry Point for the Saved Search Server
Run with: python server.py
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from mcp.server.models import InitializationOptions
from mcp.server import NotificationOptions, Server
from mcp.server.stdio import stdio_server
from mcp import types

from config import DatabaseConfig, ShardConfig, get_environment_mode
from container import RepositoryContainer
from database import DatabaseMigration
from handlers import get_handler
from shards import ShardDirectory
from tools import get_core_tool_catalog
from utils.error_messages import enhance_error_message

__version__ = "1.0.0"

SCHEMA_FILE = Path(__file__).parent / "schema.sql"

# Initialize logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize server
app = Server("saved-search-server")
shards: ShardDirectory = None
repos: RepositoryContainer = None


@app.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List the saved search tools"""
    return get_core_tool_catalog()


@app.call_tool()
async def handle_call_tool(
    name: str, arguments: dict[str, Any]
) -> list[types.TextContent]:
    """
    Dispatch a tool call to its handler.

    Saved search errors come back from the handler as structured error objects;
    anything else (database errors, bugs) is logged and rendered as text here.
    """
    handler = get_handler(name)
    if not handler:
        return [types.TextContent(type="text", text=f"Unknown tool: {name}")]

    try:
        return await handler(arguments or {}, repos)
    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return [types.TextContent(
            type="text",
            text=json.dumps({"error": True, "code": "INTERNAL_ERROR", "message": enhance_error_message(e)}),
        )]


async def build_shard_directory() -> ShardDirectory:
    master_config = DatabaseConfig.from_environment()
    shard_config = ShardConfig.from_environment(master_config)
    directory = ShardDirectory.from_config(master_config, shard_config)
    await directory.connect()
    return directory


async def init_schema():
    """Apply schema.sql to the master database and every shard"""
    directory = await build_shard_directory()
    try:
        applied = set()
        for db in [directory.master, *directory.shards.values()]:
            if id(db) in applied:
                continue
            await DatabaseMigration(db).apply_schema(str(SCHEMA_FILE))
            applied.add(id(db))
    finally:
        await directory.disconnect()


async def main():
    """Main entry point for MCP server"""
    global shards, repos

    try:
        shards = await build_shard_directory()
        repos = RepositoryContainer(shards)

        logger.info("Saved Search Server starting...")
        logger.info(f"Environment: {get_environment_mode()}")
        logger.info(f"Master database: {shards.master.config.database} at {shards.master.config.host}")

        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name="saved-search-server",
                    server_version=__version__,
                    capabilities=app.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={}
                    )
                )
            )
    except Exception as e:
        logger.error(f"Failed to start MCP server: {e}", exc_info=True)
        raise
    finally:
        if shards:
            await shards.disconnect()
            logger.info("Database connections closed")


def cli_entry():
    """Entry point for console script - wraps async main()"""
    import argparse

    parser = argparse.ArgumentParser(description="Saved Search MCP Server")
    parser.add_argument('--version', '-v', action='store_true', help='Show version')
    parser.add_argument('--init-schema', action='store_true', help='Apply schema.sql to the master and all shards, then exit')

    args = parser.parse_args()

    if args.version:
        print(f"saved-search-server version {__version__}")
        sys.exit(0)

    if args.init_schema:
        asyncio.run(init_schema())
        return

    logger.info("Starting in stdio mode...")
    asyncio.run(main())


if __name__ == "__main__":
    cli_entry()
