# =============================================================================
# core/errors.py  -  Error taxonomy for the Veeam API access layer
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Defines the exceptions the core raises.  The tool layer catches
#   GatewayError (and pydantic's ValidationError for bad tool input) and turns
#   it into a failed tool result, so nothing here ever reaches the agent as a
#   traceback.
#
# WHAT IS *NOT* HERE:
#   A failed refresh grant is not an exception.  TokenManager.refresh()
#   returns False and ensure_valid() falls back to a full login.
# =============================================================================


class GatewayError(Exception):
    """Base class for errors raised by the API access layer."""


class AuthenticationError(GatewayError):
    """The password grant was rejected by the token endpoint."""

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"Auth failed {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class UpstreamError(GatewayError):
    """A resource GET returned a non-success status (or an unreadable body)."""

    def __init__(self, path: str, status_code: int, body: str = "") -> None:
        super().__init__(f"GET {path} {status_code}: {body}")
        self.path = path
        self.status_code = status_code
        self.body = body
