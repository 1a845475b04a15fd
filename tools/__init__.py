# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool server.
#
# ARCHITECTURAL ROLE:
#   tools/ is the "translation layer" between MCP and the Veeam API client in
#   core/.  For every endpoint in core.endpoints it:
#     1. Registers an MCP tool whose schema matches the endpoint's input model
#     2. Validates the agent's arguments before any network call
#     3. Calls core.client and passes the result through core.guardrail
#     4. Renders a single text result, or a ToolError the agent can read
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT hold tokens or talk HTTP themselves (that's core/)
#   - They do NOT retry, paginate or truncate on their own
# =============================================================================
