"""Normalisation of agent replies into :class:`AnswerDocument` objects.

The agent is prompted for a fixed set of keys but models drift, so every
logical field accepts several key names. The first key present (non-null)
in ``FIELD_ALIASES`` order wins.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..models import (
    AnswerDocument,
    AnswerSource,
    NormalizedAnswer,
    StructuredAnswer,
    UnstructuredAnswer,
)
from ..utils.llm_parsing import extract_structured_json

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Alias table (field -> accepted keys, highest priority first)
# ---------------------------------------------------------------------------
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "summary": ("summary",),
    "meaning": ("meaning", "what_is_happening", "what", "details"),
    "how_to_read": ("how_to_read", "how_to_interpret", "how_to_use"),
    "limitations": ("limitations", "caveats", "uncertainty"),
    "next_steps": ("next_steps", "recommended_actions", "actions"),
    "sources": ("sources", "references", "links"),
}

SOURCE_LABEL_KEYS: Tuple[str, ...] = ("label", "title", "name", "url")
PLACEHOLDER_SOURCE_LABEL: str = "Source"
MAX_RENDERED_SOURCES: int = 8


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def pick(payload: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    """Return the value of the first key in *keys* that is present and not null."""
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def as_list(value: Any) -> List[str]:
    """Coerce *value* to a list of non-blank strings."""
    if isinstance(value, (list, tuple)):
        items = [_stringify(v).strip() for v in value]
        return [item for item in items if item]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def _source(entry: Any) -> Optional[AnswerSource]:
    if isinstance(entry, str):
        label = entry.strip()
        url = None
    elif isinstance(entry, Mapping):
        label = _stringify(pick(entry, SOURCE_LABEL_KEYS) or PLACEHOLDER_SOURCE_LABEL).strip()
        url = _stringify(entry.get("url")).strip() or None
    else:
        return None

    if not label or label == PLACEHOLDER_SOURCE_LABEL:
        return None
    return AnswerSource(label=label, url=url)


def normalize_sources(value: Any) -> List[AnswerSource]:
    """Normalise string or object source entries to :class:`AnswerSource`."""
    if isinstance(value, (str, Mapping)):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [s for s in (_source(entry) for entry in value) if s is not None]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_document(payload: Mapping[str, Any]) -> AnswerDocument:
    """Map a parsed JSON object onto an :class:`AnswerDocument`."""
    summary = pick(payload, FIELD_ALIASES["summary"])
    return AnswerDocument(
        summary=_stringify(summary).strip(),
        meaning=as_list(pick(payload, FIELD_ALIASES["meaning"])),
        how_to_read=as_list(pick(payload, FIELD_ALIASES["how_to_read"])),
        limitations=as_list(pick(payload, FIELD_ALIASES["limitations"])),
        next_steps=as_list(pick(payload, FIELD_ALIASES["next_steps"])),
        sources=normalize_sources(pick(payload, FIELD_ALIASES["sources"])),
    )


def normalize_answer(raw_text: Optional[str], payload: Any = None) -> NormalizedAnswer:
    """Turn an agent reply into a structured or unstructured answer.

    *payload* is an object the caller already parsed (e.g. by the agent
    proxy); it takes precedence over re-parsing *raw_text*. Never raises.
    """
    if not isinstance(payload, Mapping):
        try:
            payload = extract_structured_json(raw_text or "")
        except ValueError as exc:
            logger.info("Answer is not structured, falling back to raw text: %s", exc)
            return UnstructuredAnswer(raw_text=raw_text or "")

    return StructuredAnswer(document=build_document(payload), payload=dict(payload))


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
_HEADINGS: Dict[str, Dict[str, str]] = {
    "en": {
        "summary": "Summary",
        "meaning": "Meaning",
        "how_to_read": "How to read this",
        "limitations": "Limitations",
        "next_steps": "Next steps",
        "sources": "Sources",
        "empty": "No answer yet.",
    },
    "es": {
        "summary": "Resumen",
        "meaning": "Qué significa",
        "how_to_read": "Cómo leerlo",
        "limitations": "Limitaciones",
        "next_steps": "Próximos pasos",
        "sources": "Fuentes",
        "empty": "Aún no hay respuesta.",
    },
}


def render_answer(answer: NormalizedAnswer, lang: str = "es") -> str:
    """Render *answer* as Markdown, omitting sections that have no content."""
    headings = _HEADINGS.get(lang, _HEADINGS["es"])

    if isinstance(answer, UnstructuredAnswer):
        return answer.raw_text or headings["empty"]

    doc = answer.document
    blocks: List[str] = []
    if doc.summary:
        blocks.append(f"## {headings['summary']}\n\n{doc.summary}")
    for name in ("meaning", "how_to_read", "limitations", "next_steps"):
        items: List[str] = getattr(doc, name)
        if items:
            bullets = "\n".join(f"- {item}" for item in items)
            blocks.append(f"## {headings[name]}\n\n{bullets}")
    if doc.sources:
        lines = [
            f"- [{s.label}]({s.url})" if s.url else f"- {s.label}"
            for s in doc.sources[:MAX_RENDERED_SOURCES]
        ]
        blocks.append(f"## {headings['sources']}\n\n" + "\n".join(lines))

    return "\n\n".join(blocks)


__all__ = [
    "FIELD_ALIASES",
    "pick",
    "as_list",
    "normalize_sources",
    "build_document",
    "normalize_answer",
    "render_answer",
]
