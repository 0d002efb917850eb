"""Pull the JSON payload out of noisy WP-CLI output.

Text processing only; callers run the commands.
"""

from __future__ import annotations

import json
from typing import Any, Optional

_DECODER = json.JSONDecoder()


def extract_json_blob(s: str) -> Optional[str]:
    """Return the first complete JSON object/array embedded in text.

    Tries every '[' or '{' from left to right and returns the first span
    that decodes as a container. Returns None if there is none.
    """
    if not s:
        return None
    for start, ch in enumerate(s):
        if ch not in "[{":
            continue
        try:
            value, end = _DECODER.raw_decode(s, start)
        except ValueError:
            continue
        if isinstance(value, (list, dict)):
            return s[start:end]
    return None


def rows_of(data: Any) -> list[dict[str, Any]]:
    """Keep only dict rows from a decoded `wp ... list` result."""
    if not isinstance(data, list):
        return []
    return [row for row in data if isinstance(row, dict)]
