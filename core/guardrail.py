# =============================================================================
# core/guardrail.py  -  Capping what a tool is allowed to hand back
# =============================================================================
#
# CONTEXT BUDGET DISCIPLINE:
#   A Veeam listing can be megabytes of JSON.  Feeding that straight into an
#   agent's context is wasteful at best and fatal at worst, so every tool
#   result passes through enforce() on its way out.
#
#   The check is deliberately rough: it measures the serialized ORIGINAL
#   payload and, when it's over MAX_BYTES, shrinks by shape.  It does not
#   re-measure the shrunk result.
#
#   Despite the name, MAX_BYTES is compared with the length of the JSON text
#   in characters (code points), not its UTF-8 encoding.  Non-ASCII payloads
#   can therefore pass the check while encoding to more than MAX_BYTES bytes.
#
#   Shape                          Shrink
#   -----------------------------  ----------------------------------------
#   list                           first MAX_ITEMS elements
#   dict with list "items"/"data"  that list only, first MAX_ITEMS elements
#   any other dict                 first MAX_KEYS keys (insertion order)
#   str                            first MAX_BYTES characters
# =============================================================================

import json
from typing import Any, Optional

from core.pagination import MAX_ITEMS

MAX_BYTES = 1_000_000
MAX_KEYS = 50

TRUNCATION_NOTE = f"Response truncated (~{round(MAX_BYTES / 1024)}KB guardrail)."


def serialize(value: Any) -> str:
    """Compact JSON text for `value`, or str(value) if it isn't JSON-serializable."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return str(value)


def _shrink(payload: Any) -> Any:
    if isinstance(payload, list):
        return payload[:MAX_ITEMS]
    if isinstance(payload, dict):
        for key in ("items", "data"):
            if isinstance(payload.get(key), list):
                return {**payload, key: payload[key][:MAX_ITEMS]}
        return {key: payload[key] for key in list(payload)[:MAX_KEYS]}
    if isinstance(payload, str):
        return payload[:MAX_BYTES]
    return payload


def enforce(payload: Any) -> tuple[Any, Optional[str]]:
    """Return ``(payload, None)`` when small enough, else ``(shrunk, note)``."""
    if len(serialize(payload)) <= MAX_BYTES:
        return payload, None
    return _shrink(payload), TRUNCATION_NOTE
