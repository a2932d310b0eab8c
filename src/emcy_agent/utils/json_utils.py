"""Centralized JSON serialization utilities.

Pre-created partial functions for common JSON serialization patterns.
"""

from __future__ import annotations

import json

from collections.abc import Callable
from functools import partial
from typing import Any

# Compact JSON serialization (no spaces) with fallback to str for non-serializable types.
# Matches the wire format of the chat backend and keeps transcript entries small.
# Example: json_compact({"key": "value"}) -> '{"key":"value"}'
json_compact: Callable[..., str] = partial(json.dumps, separators=(",", ":"), default=str)


def stringify_result(result: Any) -> str:
    """Render a tool result for the transcript.

    Strings pass through unchanged; anything else is compact JSON.
    """
    if isinstance(result, str):
        return result
    return json_compact(result)
