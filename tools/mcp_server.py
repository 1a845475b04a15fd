# =============================================================================
# tools/mcp_server.py  -  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Turns every entry of core.endpoints.ENDPOINTS into an MCP tool.  Each
#   tool is a thin wrapper: validate the arguments, ask core.client for the
#   data, run it through core.guardrail, and hand back one block of text.
#
# HOW IT WORKS (the flow):
#   1. The agent calls a tool by name via MCP (e.g. "list_jobs")
#   2. FastMCP routes the call to the wrapper built by _register()
#   3. fetch() validates the arguments against the strict input model
#   4. VeeamClient fetches the page(s), logging in / refreshing as needed
#   5. enforce() caps the payload; format_result() renders the text
#
# TOOL NAMING CONVENTIONS:
#   - list_*  -> collection GET, supports offset/limit/filter/sort/search/all
#   - get_*   -> single resource GET by id
#   Every tool is read-only and idempotent, and is annotated as such.
#
# RESULT FORMAT:
#   A single text block: an optional "NOTE: ..." line (only when the
#   guardrail had to truncate) followed by the JSON payload.
#
# ERRORS:
#   Bad arguments, rejected logins, upstream failures and network errors all
#   become a ToolError, which FastMCP reports as a failed tool call carrying
#   our message.  The agent sees "GET /api/v3/jobs 403: ..." instead of a
#   stack trace.
# =============================================================================

import logging
import sys
from datetime import datetime, timezone
from typing import Annotated, Any, Optional

import httpx
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field, StrictBool, StrictInt, ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

# The tools layer depends on core/ and nothing else.
from core.client import VeeamClient
from core.endpoints import ENDPOINTS, Endpoint, EndpointKind
from core.errors import GatewayError
from core.guardrail import enforce, serialize
from core.models import ListQuery, ResourceQuery, ScopedListQuery

SERVER_NAME = "veeam-mcp-server"
VERSION = "0.1.4"

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because in stdio mode the MCP messages travel over STDOUT.
# A stray log line on stdout would corrupt the protocol stream.
#
#   CYAN    incoming tool calls with their arguments
#   YELLOW  intermediate status (validation failures, upstream errors)
#   GREEN   response summary (size, whether it was truncated)
# =============================================================================

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Send all logging to stderr at `level`."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    if logging.getLogger().getEffectiveLevel() > logging.DEBUG:
        # httpx logs every request at INFO; only show that when debugging
        logging.getLogger("httpx").setLevel(logging.WARNING)


def _log_request(tool_name: str, **params: Any) -> None:
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, text: str, truncated: bool = False) -> str:
    """Log a one-line summary of the response (never the full body), then return it."""
    suffix = " (truncated)" if truncated else ""
    logger.info(f"{_GREEN}  ← {tool_name} response: {len(text)} chars{suffix}{_RESET}")
    return text


# =============================================================================
# Core of a tool call
# =============================================================================
def format_result(payload: Any, note: Optional[str] = None) -> str:
    """Render a tool result: optional NOTE line, then the JSON payload."""
    text = serialize(payload)
    if note:
        return f"NOTE: {note}\n{text}"
    return text


async def fetch(client: VeeamClient, endpoint: Endpoint, arguments: dict[str, Any]) -> tuple[Any, Optional[str]]:
    """Validate `arguments`, GET the endpoint and apply the guardrail.

    Validation happens before anything touches the network.

    Returns:
        ``(payload, note)`` where `note` is set only if the payload was cut.

    Raises:
        pydantic.ValidationError: if `arguments` don't fit the endpoint's model.
        GatewayError: if authentication or the upstream GET fails.
        httpx.HTTPError: on transport failures.
    """
    if endpoint.kind is EndpointKind.LIST:
        query = ListQuery.model_validate(arguments)
        data = await client.get_list(endpoint.path, query)
    elif endpoint.kind is EndpointKind.SCOPED_LIST:
        query = ScopedListQuery.model_validate(arguments)
        data = await client.get_list(endpoint.resolve(query.id), query)
    else:
        resource = ResourceQuery.model_validate(arguments)
        data = await client.get(endpoint.resolve(resource.id))

    return enforce(data)


async def invoke(client: VeeamClient, endpoint: Endpoint, arguments: dict[str, Any]) -> str:
    """Run one tool call end to end and return its text result."""
    payload, note = await fetch(client, endpoint, arguments)
    return format_result(payload, note)


async def _run(client: VeeamClient, endpoint: Endpoint, **arguments: Any) -> str:
    arguments = {k: v for k, v in arguments.items() if v is not None}
    _log_request(endpoint.name, **arguments)
    try:
        payload, note = await fetch(client, endpoint, arguments)
    except ValidationError as exc:
        _log_status(f"Rejected arguments: {exc.error_count()} error(s)")
        raise ToolError(f"Invalid arguments for {endpoint.name}: {exc}") from exc
    except GatewayError as exc:
        _log_status(str(exc))
        raise ToolError(str(exc)) from exc
    except httpx.HTTPError as exc:
        _log_status(f"Network error: {exc!r}")
        raise ToolError(f"Network error calling {endpoint.path}: {exc}") from exc
    return _log_response(endpoint.name, format_result(payload, note), truncated=note is not None)


# =============================================================================
# Tool wrappers
# =============================================================================
# FastMCP builds each tool's JSON schema from the wrapper's signature, so the
# parameter names below are exactly the argument names the agent sends.
# One factory per endpoint kind; each call closes over its own endpoint.
# =============================================================================
# FastMCP validates these before invoke() runs, so they are strict too:
# "5" is not an int and "yes" is not a bool.
Offset = Annotated[Optional[Annotated[StrictInt, Field(ge=0)]], Field(description=">=0")]
Limit = Annotated[Optional[Annotated[StrictInt, Field(ge=1, le=100)]], Field(description="1-100")]
FetchAll = Annotated[Optional[StrictBool], Field(description="Fetch all pages automatically")]
ResourceIdArg = Annotated[str, Field(description="Resource ID")]


def _list_tool(client: VeeamClient, endpoint: Endpoint):
    async def list_tool(
        offset: Offset = None,
        limit: Limit = None,
        filter: Optional[str] = None,
        sort: Optional[str] = None,
        search: Optional[str] = None,
        all: FetchAll = None,
    ) -> str:
        return await _run(
            client, endpoint,
            offset=offset, limit=limit, filter=filter, sort=sort, search=search, all=all,
        )

    return list_tool


def _scoped_list_tool(client: VeeamClient, endpoint: Endpoint):
    async def scoped_list_tool(
        id: ResourceIdArg,
        offset: Offset = None,
        limit: Limit = None,
        filter: Optional[str] = None,
        sort: Optional[str] = None,
        search: Optional[str] = None,
        all: FetchAll = None,
    ) -> str:
        return await _run(
            client, endpoint,
            id=id, offset=offset, limit=limit, filter=filter, sort=sort, search=search, all=all,
        )

    return scoped_list_tool


def _resource_tool(client: VeeamClient, endpoint: Endpoint):
    async def resource_tool(id: ResourceIdArg) -> str:
        return await _run(client, endpoint, id=id)

    return resource_tool


_FACTORIES = {
    EndpointKind.LIST: _list_tool,
    EndpointKind.SCOPED_LIST: _scoped_list_tool,
    EndpointKind.RESOURCE: _resource_tool,
}


def health_payload(transport: str) -> dict[str, Any]:
    return {
        "name": SERVER_NAME,
        "version": VERSION,
        "transport": transport,
        "tools": [endpoint.name for endpoint in ENDPOINTS],
        "now": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
def create_server(client: VeeamClient) -> FastMCP:
    """Build the MCP server with one tool per endpoint, all backed by `client`."""
    mcp = FastMCP(
        SERVER_NAME,
        instructions="Read-only access to a Veeam Backup & Replication REST API.",
    )

    for endpoint in ENDPOINTS:
        handler = _FACTORIES[endpoint.kind](client, endpoint)
        mcp.tool(
            name=endpoint.name,
            description=endpoint.description,
            annotations={"title": endpoint.title, "readOnlyHint": True, "idempotentHint": True},
        )(handler)

    # Only served by the HTTP-based transports (--sse); ignored on stdio.
    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse(health_payload("sse"))

    @mcp.custom_route("/", methods=["GET"])
    async def root(request: Request) -> JSONResponse:
        return JSONResponse(health_payload("sse"))

    return mcp
