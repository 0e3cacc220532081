"""Shared helpers for cleaning generated text before parsing."""

from __future__ import annotations

from typing import Final

THINK_OPEN: Final[str] = "<think>"
THINK_CLOSE: Final[str] = "</think>"


def strip_think_blocks(text: str) -> str:
    """Drop a leading ``<think>...</think>`` block and surrounding whitespace.

    Reasoning models served behind the agent endpoint may prefix their reply
    with such a block. Only a block at the very start is removed, so a
    ``</think>`` inside the answer itself (e.g. in a JSON string) is kept.
    An unterminated leading block is left untouched.
    """
    if not text:
        return ""

    stripped: str = text.strip()
    if not stripped.startswith(THINK_OPEN):
        return stripped

    idx: int = stripped.find(THINK_CLOSE)
    if idx == -1:
        return stripped
    return stripped[idx + len(THINK_CLOSE) :].strip()


__all__ = ["strip_think_blocks"]
