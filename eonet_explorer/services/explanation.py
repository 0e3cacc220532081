"""Event explanations via the generative agent endpoint."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from openai import OpenAIError

from ..clients.agent_client import get_agent_client
from ..config import AGENT_MODEL, DEFAULT_LANG
from ..exceptions import ExplanationError, FeedError
from .feeds import fetch_event_detail

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Prompt material
# ---------------------------------------------------------------------------
DEFAULT_QUESTIONS: Dict[str, str] = {
    "en": (
        "Explain this event in a simple way for a non-technical user. Focus on what it is,"
        " why it appears in EONET, and how to interpret sources and geometry."
    ),
    "es": (
        "Explica este evento de forma simple para un usuario no técnico. Enfócate en qué es,"
        " por qué aparece en EONET y cómo interpretar sources y geometry."
    ),
}

LANGUAGE_RULES: Dict[str, str] = {
    "en": "Return content in English.",
    "es": "Devuelve el contenido en español.",
}

QUICK_QUESTIONS: Dict[str, List[str]] = {
    "en": [
        "What does this event mean?",
        "How reliable is this data?",
        "How should I interpret geometry and sources?",
    ],
    "es": [
        "¿Qué significa este evento?",
        "¿Qué tan confiable es este dato?",
        "¿Cómo interpreto geometry y sources?",
    ],
}

ANSWER_SCHEMA: str = "\n".join(
    [
        "{",
        '  "summary": "string (1-3 lines)",',
        '  "meaning": ["bullet", "bullet"],',
        '  "how_to_read": ["bullet", "bullet"],',
        '  "sources": [{"label":"string","url":"string"}],',
        '  "limitations": ["bullet"],',
        '  "next_steps": ["bullet"]',
        "}",
    ]
)


@dataclass(slots=True, frozen=True)
class ExplanationReply:
    """Raw agent output for one explanation request."""

    event_id: str
    raw_text: str
    retrieval: Any = None


def parse_lang(raw: Optional[str]) -> str:
    """Anything other than ``"en"`` selects the default language."""
    return "en" if raw == "en" else DEFAULT_LANG


def build_prompt(event: Dict[str, Any], question: Optional[str], lang: str) -> str:
    """Compose the single user message sent to the agent."""
    lang = parse_lang(lang)
    question = (question or "").strip() or DEFAULT_QUESTIONS[lang]
    return "\n".join(
        [
            "You are an educational assistant.",
            "You MUST answer with valid JSON only (no markdown, no extra text).",
            "If you can't support a claim with the provided Event JSON or the attached"
            " Knowledge Base, say so in limitations.",
            "",
            LANGUAGE_RULES[lang],
            "",
            "JSON schema (exact keys):",
            ANSWER_SCHEMA,
            "",
            "Guidance:",
            "- Keep it friendly and non-technical.",
            "- Explain: status/open/closed, geometry type, what sources mean.",
            "- Add sources URLs from Event JSON (and KB docs if relevant).",
            "- Don't invent precise causes/impacts. Provide general safety guidance only.",
            "",
            "User question:",
            question,
            "",
            "Event JSON:",
            json.dumps(event, indent=2, ensure_ascii=False),
        ]
    )


def fetch_explanation(event_id: str, question: Optional[str] = None, lang: str = DEFAULT_LANG) -> ExplanationReply:
    """Ask the agent to explain *event_id*; returns its raw reply text."""
    event_id = (event_id or "").strip()
    if not event_id:
        raise ExplanationError("Missing eventId")

    try:
        event = fetch_event_detail(event_id)
    except FeedError as exc:
        raise ExplanationError(f"EONET event fetch error: {exc}") from exc

    prompt = build_prompt(event, question, lang)
    logger.info("Requesting explanation for event %s (lang=%s)", event_id, parse_lang(lang))

    try:
        client = get_agent_client()
    except EnvironmentError as exc:
        logger.error("Agent client unavailable: %s", exc)
        raise ExplanationError("Missing agent env vars") from exc

    try:
        resp = client.chat.completions.create(
            model=AGENT_MODEL,
            messages=[{"role": "user", "content": prompt}],
            stream=False,
            extra_body={
                "include_retrieval_info": True,
                "include_guardrails_info": True,
            },
        )
    except OpenAIError as exc:
        logger.error("Agent request failed for event %s: %s", event_id, exc)
        raise ExplanationError(f"Agent request failed: {exc}") from exc

    logger.debug("Raw agent response: %s", resp.model_dump_json())
    raw_text: str = (resp.choices[0].message.content if resp.choices else None) or ""
    extra = resp.model_dump()
    retrieval = extra.get("retrieval") or extra.get("retrieval_info")

    return ExplanationReply(event_id=event_id, raw_text=raw_text, retrieval=retrieval)


__all__ = [
    "DEFAULT_QUESTIONS",
    "QUICK_QUESTIONS",
    "ExplanationReply",
    "parse_lang",
    "build_prompt",
    "fetch_explanation",
]
