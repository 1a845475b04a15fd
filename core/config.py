# =============================================================================
# core/config.py  -  Settings read from the process environment
# =============================================================================
#
# HOW CONFIG FLOWS:
#   main.py calls load_dotenv() first, so a local .env file can supply any of
#   the variables below.  Settings.from_env() is then called exactly once and
#   the resulting frozen object is handed to whatever needs it.  Nothing in
#   core/ reads os.environ after startup.
#
# VARIABLES:
#   VEEAM_BASE        API base URL (e.g. "https://vbr.example.local:9419")
#   VEEAM_USER        Username for the OAuth2 password grant
#   VEEAM_PASS        Password for the OAuth2 password grant
#   VEEAM_TIMEOUT     Per-request HTTP timeout in seconds (default 30)
#   VEEAM_VERIFY_TLS  "false" to accept self-signed certificates
#   HOST / PORT       Where the SSE transport listens
#   LOG_LEVEL         Logging verbosity (DEBUG, INFO, WARNING, ...)
# =============================================================================

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from core.models import Credential

DEFAULT_BASE_URL = "https://veeam.example.local"

_FALSEY = {"0", "false", "no", "off"}


def _parse_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer, got {raw!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"PORT out of range: {port}")
    return port


@dataclass(frozen=True)
class Settings:
    """Everything the gateway needs to know at startup."""

    base_url: str = DEFAULT_BASE_URL
    username: str = ""
    password: str = field(default="", repr=False)
    timeout_seconds: float = 30.0
    verify_tls: bool = True
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from `environ` (defaults to os.environ).

        Raises:
            ValueError: if a numeric variable can't be parsed.
        """
        env = os.environ if environ is None else environ
        return cls(
            base_url=env.get("VEEAM_BASE") or DEFAULT_BASE_URL,
            username=env.get("VEEAM_USER", ""),
            password=env.get("VEEAM_PASS", ""),
            timeout_seconds=_parse_float("VEEAM_TIMEOUT", env.get("VEEAM_TIMEOUT", "30")),
            verify_tls=env.get("VEEAM_VERIFY_TLS", "true").strip().lower() not in _FALSEY,
            host=env.get("HOST", "0.0.0.0"),
            port=_parse_port(env.get("PORT", "3000")),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def credential(self) -> Credential:
        return Credential(self.base_url, self.username, self.password)
