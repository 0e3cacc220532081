"""Service layer modules grouping business logic by concern.

This module provides convenience re-exports so that callers can simply do for
example `from eonet_explorer.services import fetch_events` without having to
know which underlying module provides the symbol.
"""

from .feeds import fetch_events, fetch_categories, fetch_event_detail  # noqa: F401
from .aggregation import EventAggregator, aggregate_feeds, build_map_points, filter_events  # noqa: F401
from .answers import normalize_answer, render_answer  # noqa: F401
from .explanation import ExplanationReply, fetch_explanation  # noqa: F401

__all__ = [
    "fetch_events",
    "fetch_categories",
    "fetch_event_detail",
    "EventAggregator",
    "aggregate_feeds",
    "build_map_points",
    "filter_events",
    "normalize_answer",
    "render_answer",
    "ExplanationReply",
    "fetch_explanation",
]
