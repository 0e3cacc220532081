"""Errors raised by the catalog and agent collaborators.

Malformed records, unparseable answers, stale replies and dangling
selections are handled in place and never surface as exceptions.
"""

from __future__ import annotations


class EonetError(RuntimeError):
    """Base class for every error raised by eonet_explorer."""


class FeedError(EonetError):
    """A single category feed could not be fetched or decoded."""

    def __init__(self, message: str, category: str | None = None) -> None:
        super().__init__(message)
        self.category = category


class AggregationError(FeedError):
    """At least one feed of a multi-category request failed."""


class ExplanationError(EonetError):
    """The explanation request for an event failed."""


__all__ = ["EonetError", "FeedError", "AggregationError", "ExplanationError"]
