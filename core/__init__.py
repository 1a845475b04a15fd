# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains the authenticated API access layer for Veeam Backup &
# Replication: token lifecycle, request execution, pagination and payload
# guardrails, plus the endpoint table and configuration they run on.
#
# CRITICAL ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP or knows about the MCP protocol.
#   It takes a (path, query) and returns JSON or raises a core.errors
#   exception, so it can be tested against a mocked HTTP transport without
#   starting a server.
# =============================================================================
