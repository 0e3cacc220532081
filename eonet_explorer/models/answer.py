"""Typed result of normalising a generated explanation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass(slots=True)
class AnswerSource:
    label: str
    url: Optional[str] = None


@dataclass(slots=True)
class AnswerDocument:
    """Structural breakdown of an explanation. Every field may be empty."""

    summary: str = ""
    meaning: List[str] = field(default_factory=list)
    how_to_read: List[str] = field(default_factory=list)
    limitations: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)
    sources: List[AnswerSource] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.summary
            or self.meaning
            or self.how_to_read
            or self.limitations
            or self.next_steps
            or self.sources
        )


@dataclass(slots=True)
class StructuredAnswer:
    """The reply carried a JSON object; ``payload`` is that object as parsed."""

    document: AnswerDocument
    payload: Dict[str, Any] = field(default_factory=dict)
    structured: bool = field(default=True, init=False)


@dataclass(slots=True)
class UnstructuredAnswer:
    """No JSON object could be extracted; show ``raw_text`` verbatim."""

    raw_text: str = ""
    structured: bool = field(default=False, init=False)


NormalizedAnswer = Union[StructuredAnswer, UnstructuredAnswer]

__all__ = [
    "AnswerSource",
    "AnswerDocument",
    "StructuredAnswer",
    "UnstructuredAnswer",
    "NormalizedAnswer",
]
