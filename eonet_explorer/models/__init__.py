"""Domain models used across the project."""

from .event import (  # noqa: F401
    CLOSED,
    OPEN,
    CategoryRef,
    Event,
    GeometryRecord,
    MapPoint,
    SourceRef,
)
from .answer import (  # noqa: F401
    AnswerDocument,
    AnswerSource,
    NormalizedAnswer,
    StructuredAnswer,
    UnstructuredAnswer,
)

__all__ = [
    "OPEN",
    "CLOSED",
    "CategoryRef",
    "SourceRef",
    "GeometryRecord",
    "Event",
    "MapPoint",
    "AnswerSource",
    "AnswerDocument",
    "StructuredAnswer",
    "UnstructuredAnswer",
    "NormalizedAnswer",
]
