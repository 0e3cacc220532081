"""Utilities for pulling a JSON object out of a free-form agent reply.

The agent is asked for bare JSON but regularly wraps it in a fenced block or
surrounds it with prose, so extraction walks a fixed chain of attempts.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from .text_cleaning import strip_think_blocks

__all__ = ["extract_structured_json"]

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```", flags=re.IGNORECASE)


def _loads_object(snippet: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(snippet)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_structured_json(response_text: str) -> Dict[str, Any]:
    """Robustly extract a JSON object from an agent reply.

    Parameters
    ----------
    response_text
        The raw message content returned by the agent.

    Returns
    -------
    dict[str, Any]
        The first JSON object found by, in order: a fenced ```json block,
        the whole trimmed text when it is itself an object, and the slice
        between the first ``{`` and the last ``}``.

    Raises
    ------
    ValueError
        If none of the attempts yields a JSON object.
    """

    cleaned: str = strip_think_blocks(response_text)
    if not cleaned:
        raise ValueError("Agent response is empty")

    # 1. Fenced ```json block
    fenced = _FENCED_JSON.search(cleaned)
    if fenced:
        snippet = fenced.group(1).strip()
        parsed = _loads_object(snippet)
        if parsed is not None:
            return parsed
        cleaned = snippet  # Narrow search space.

    # 2. The whole text is an object
    if cleaned.startswith("{") and cleaned.endswith("}"):
        parsed = _loads_object(cleaned)
        if parsed is not None:
            return parsed

    # 3. First opening brace to last closing brace
    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first != -1 and last > first:
        parsed = _loads_object(cleaned[first : last + 1])
        if parsed is not None:
            return parsed

    raise ValueError("Could not locate a JSON object in agent response")
