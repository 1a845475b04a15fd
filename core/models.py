# =============================================================================
# core/models.py  -  Data Models (the "nouns" of the gateway)
# =============================================================================
#
# Two families of models live here:
#
#   1. Plain dataclasses for state the core owns: the Credential it logs in
#      with and the TokenState it keeps fresh.  These never cross the MCP
#      boundary.
#
#   2. Pydantic models for tool INPUT.  Every tool argument dict is validated
#      against one of these before a single byte goes to the network.  They
#      are strict: unknown fields and wrongly-typed values are rejected, not
#      silently coerced or dropped.
# =============================================================================

from dataclasses import dataclass, field
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints


# -----------------------------------------------------------------------------
# Credential - who we log in as
# -----------------------------------------------------------------------------
# Built once at startup from the environment and never mutated.  The password
# is kept out of repr() so it can't leak into a log line by accident.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Credential:
    """Base URL plus username/password for the OAuth2 password grant."""

    base_url: str
    username: str
    password: str = field(repr=False)

    def __post_init__(self) -> None:
        # "https://vbr:9419/" and "https://vbr:9419" must build the same URLs
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))


# -----------------------------------------------------------------------------
# TokenState - the OAuth2 token pair and when it goes stale
# -----------------------------------------------------------------------------
# Owned and mutated in place by core.auth.TokenManager.  It is a separate
# object (not module globals) so tests and multiple managers can each hold
# their own.
# -----------------------------------------------------------------------------
@dataclass
class TokenState:
    """Mutable OAuth2 token state for one credential."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: float = 0.0            # epoch seconds

    def is_fresh(self, now: float, margin: float) -> bool:
        """True when an access token is held and won't expire within `margin` seconds."""
        return bool(self.access_token) and now < self.expires_at - margin


# -----------------------------------------------------------------------------
# Tool input models
# -----------------------------------------------------------------------------
class ListQuery(BaseModel):
    """Arguments accepted by every list-style tool."""

    model_config = ConfigDict(extra="forbid", strict=True)

    offset: Optional[int] = Field(default=None, ge=0, description=">=0")
    limit: Optional[int] = Field(default=None, ge=1, le=100, description="1-100")
    filter: Optional[str] = None
    sort: Optional[str] = None
    search: Optional[str] = None
    all: Optional[bool] = Field(default=None, description="Fetch all pages automatically")


ResourceId = Annotated[str, StringConstraints(min_length=1)]


class ScopedListQuery(ListQuery):
    """List arguments for a collection nested under a parent resource."""

    id: ResourceId = Field(description="Resource ID")


class ResourceQuery(BaseModel):
    """Arguments accepted by get-by-id tools."""

    model_config = ConfigDict(extra="forbid", strict=True)

    id: ResourceId = Field(description="Resource ID")
