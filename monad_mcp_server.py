#!/usr/bin/env python3
"""
MCP server for Monad testnet queries.

Tools:
- get-mon-balance: native MON balance of an address
- get-nft-portfolio: NFTs held by an address (Reservoir)
- get-trending-nft-collections: trending mints on Monad testnet (Reservoir)

Wraps monad_client.py and nft_format.py as MCP tools over stdio.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import sys
from pathlib import Path
from typing import Any, Callable, List

from dotenv import load_dotenv
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from monad_client import (
    UpstreamError,
    format_units,
    get_balance_wei,
    get_trending_mints,
    get_user_tokens,
)
from monad_config import MonadConfig
from nft_format import NATIVE_SYMBOL, format_portfolio, format_trending
from tool_registry import ToolDefinition, ToolRegistry, dispatch

SERVER_NAME = "monad-testnet"
SERVER_VERSION = "0.0.1"

SERVER_DIR = Path(__file__).resolve().parent

logger = logging.getLogger("monad_mcp_server")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _fetch(cfg: MonadConfig, func: Callable[..., Any], *args: Any) -> Any:
    """Run a blocking upstream call in a thread, bounded by the request timeout."""
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(func, cfg, *args), timeout=cfg.request_timeout
        )
    except asyncio.TimeoutError as exc:
        raise UpstreamError(
            f"Request timed out after {cfg.request_timeout:g} seconds"
        ) from exc


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_get_mon_balance(cfg: MonadConfig, arguments: dict[str, Any]) -> str:
    address = arguments["address"]
    balance = await _fetch(cfg, get_balance_wei, address)
    return f"Balance for {address}: {format_units(balance)} {NATIVE_SYMBOL}"


async def _handle_get_nft_portfolio(cfg: MonadConfig, arguments: dict[str, Any]) -> str:
    address = arguments["address"]
    data = await _fetch(cfg, get_user_tokens, address)
    return format_portfolio(address, data)


async def _handle_get_trending_collections(cfg: MonadConfig, arguments: dict[str, Any]) -> str:
    data = await _fetch(cfg, get_trending_mints)
    return format_trending(data)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


def build_registry(cfg: MonadConfig) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(
        ToolDefinition(
            name="get-mon-balance",
            description="Get MON balance for an address on Monad testnet",
            input_schema={
                "type": "object",
                "properties": {
                    "address": {
                        "type": "string",
                        "description": "Monad testnet address to check balance for",
                    },
                },
                "required": ["address"],
            },
            handler=functools.partial(_handle_get_mon_balance, cfg),
            failure_subject=lambda args: f"balance for address: {args['address']}",
        )
    )
    registry.register(
        ToolDefinition(
            name="get-nft-portfolio",
            description="Get NFT portfolio for an address on Monad testnet",
            input_schema={
                "type": "object",
                "properties": {
                    "address": {
                        "type": "string",
                        "description": "Monad testnet address to check NFT portfolio for",
                    },
                },
                "required": ["address"],
            },
            handler=functools.partial(_handle_get_nft_portfolio, cfg),
            failure_subject=lambda args: f"NFT portfolio for address: {args['address']}",
        )
    )
    registry.register(
        ToolDefinition(
            name="get-trending-nft-collections",
            description="Get trending NFT collections on Monad testnet",
            input_schema={"type": "object", "properties": {}},
            handler=functools.partial(_handle_get_trending_collections, cfg),
            failure_subject=lambda args: "trending NFT collections",
        )
    )
    return registry


def create_server(registry: ToolRegistry) -> Server:
    app = Server(SERVER_NAME, version=SERVER_VERSION)

    @app.list_tools()
    async def list_tools() -> List[Tool]:
        return [definition.to_tool() for definition in registry.list()]

    @app.call_tool()
    async def call_tool(name: str, arguments: Any) -> List[TextContent]:
        return await dispatch(registry, name, arguments)

    return app


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def main() -> None:
    load_dotenv(SERVER_DIR / ".env")
    cfg = MonadConfig.from_env()

    # stdout carries the protocol; logs go to stderr.
    logging.basicConfig(
        level=cfg.log_level,
        stream=sys.stderr,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    app = create_server(build_registry(cfg))
    async with stdio_server() as (read_stream, write_stream):
        logger.info("Monad testnet MCP Server running on stdio")
        await app.run(read_stream, write_stream, app.create_initialization_options())


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Fatal error in main()")
        sys.exit(1)
