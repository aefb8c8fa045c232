"""Best-effort decoding of JSON embedded in free-text model output.

Models sometimes wrap JSON in a markdown fence, surround it with prose or return
plain text. Nothing in here raises on malformed output.
"""

import json
import re
from typing import Any

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\[{][\s\S]*?[\]}])\s*```", re.IGNORECASE)
_FIRST_ARRAY = re.compile(r"\[[\s\S]*\]")
_FIRST_OBJECT = re.compile(r"\{[\s\S]*\}")


def _try_loads(raw: str) -> Any | None:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None


def extract_json(response: str, prefer: str = "array") -> Any | None:
    """Recover a JSON value from model output.

    Tries a fenced ```json block, then the outermost array (or object), then the
    whole text.

    Args:
        response (str): Raw model output.
        prefer (str): "array" looks for [...] before {...}, "object" the other way round.

    Returns:
        Any | None: The decoded value, or None if nothing could be decoded.
    """
    if not response:
        return None

    match = _FENCED_JSON.search(response)
    if match:
        decoded = _try_loads(match.group(1))
        if decoded is not None:
            return decoded

    patterns = (_FIRST_ARRAY, _FIRST_OBJECT) if prefer == "array" else (_FIRST_OBJECT, _FIRST_ARRAY)
    for pattern in patterns:
        match = pattern.search(response)
        if match:
            decoded = _try_loads(match.group(0))
            if decoded is not None:
                return decoded

    return _try_loads(response.strip())


def format_text_response(response: str) -> list[dict]:
    """Fallback for output that is not valid JSON as a whole.

    Strips code fences and the outer array brackets, then decodes each `{...}`
    item on its own. Items that still fail become {"content": ..., "type": "text"}.
    """
    cleaned = re.sub(r"```(?:json)?\s*", "", response or "")
    cleaned = re.sub(r"^\s*\[\s*", "", cleaned)
    cleaned = re.sub(r"\s*\]\s*$", "", cleaned).strip()
    if not cleaned:
        return []

    parts = cleaned.split("},")
    items: list[dict] = []
    for index, part in enumerate(parts):
        part = part.strip()
        if index < len(parts) - 1:
            part += "}"
        decoded = _try_loads(part)
        if isinstance(decoded, dict):
            items.append(decoded)
        elif part:
            items.append({"content": part, "type": "text"})
    return items
