"""Utility functions for the eonet_explorer project.

Re-exports the parsing and geometry helpers so that imports like
`from ..utils import extract_point` work as expected.
"""

from .text_cleaning import strip_think_blocks  # noqa: F401
from .llm_parsing import extract_structured_json  # noqa: F401
from .geo import LatLon, extract_point  # noqa: F401

__all__ = [
    "strip_think_blocks",
    "extract_structured_json",
    "LatLon",
    "extract_point",
]
