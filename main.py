# =============================================================================
# main.py  -  Entry Point for the Veeam MCP server
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py              # stdio transport (spawned by an agent)
#   uv run python main.py --sse        # SSE transport on $HOST:$PORT
#
# WHAT HAPPENS:
#   1. Environment variables are loaded (a local .env file is honoured)
#   2. Settings are read once and frozen
#   3. A VeeamClient is built; it logs in lazily on the first tool call
#   4. The FastMCP server is created with one tool per Veeam endpoint
#   5. The chosen transport runs until the client disconnects or Ctrl-C
#
# In SSE mode the agent opens GET /sse, posts messages to /messages/, and
# GET /health reports the server name, version and tool list.
# =============================================================================

import argparse
import asyncio
import dataclasses
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

# Load environment variables from .env file (VEEAM_BASE, VEEAM_USER, ...)
# This must happen BEFORE Settings.from_env() reads them.
load_dotenv()

from core.client import VeeamClient
from core.config import Settings
from core.endpoints import ENDPOINTS
from tools.mcp_server import SERVER_NAME, configure_logging, create_server

logger = logging.getLogger(SERVER_NAME)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="Read-only MCP server for the Veeam Backup & Replication REST API",
    )
    parser.add_argument("--sse", action="store_true", help="Serve over SSE instead of stdio")
    parser.add_argument("--host", help="SSE bind host (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="SSE listen port (default: $PORT or 3000)")
    parser.add_argument("--log-level", help="Logging level (default: $LOG_LEVEL or INFO)")
    return parser.parse_args(argv)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Command-line flags win over the environment."""
    overrides = {
        "host": args.host,
        "port": args.port,
        "log_level": args.log_level.upper() if args.log_level else None,
    }
    return dataclasses.replace(settings, **{k: v for k, v in overrides.items() if v is not None})


async def serve(settings: Settings, use_sse: bool) -> None:
    client = VeeamClient.from_settings(settings)
    mcp = create_server(client)
    try:
        if use_sse:
            logger.info(
                f"SSE listening on http://{settings.host}:{settings.port} "
                f"(GET /sse, POST /messages/). Tools: {len(ENDPOINTS)}"
            )
            await mcp.run_async(transport="sse", host=settings.host, port=settings.port)
        else:
            logger.info(f"stdio started. Tools: {len(ENDPOINTS)}")
            await mcp.run_async(transport="stdio")
    finally:
        await client.aclose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = apply_overrides(Settings.from_env(), args)
        configure_logging(settings.log_level)
    except ValueError as exc:
        print(f"[{SERVER_NAME}] Invalid configuration: {exc}", file=sys.stderr)
        return 2

    if not settings.username or not settings.password:
        logger.warning("VEEAM_USER / VEEAM_PASS are not set; logins will fail")

    try:
        asyncio.run(serve(settings, args.sse))
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("Fatal error")
        return 1
    return 0


# =============================================================================
# Script entry point
# =============================================================================
if __name__ == "__main__":
    sys.exit(main())
