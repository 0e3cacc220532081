"""Centralised configuration for eonet_explorer.

Environment variables are loaded once and all related constants are
grouped by service for easier maintenance.
"""

from __future__ import annotations

import os
from typing import Tuple

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Load environment variables from `.env` (if present)
# ---------------------------------------------------------------------------
load_dotenv()

# ---------------------------------------------------------------------------
# EONET catalog
# ---------------------------------------------------------------------------
EONET_API_URL: str = os.getenv("EONET_API_URL", "https://eonet.gsfc.nasa.gov/api/v3")
EONET_TIMEOUT_SECONDS: float = float(os.getenv("EONET_TIMEOUT_SECONDS", "20"))

# ---------------------------------------------------------------------------
# Generative agent (OpenAI-compatible chat completions endpoint)
# ---------------------------------------------------------------------------
DO_AGENT_ENDPOINT: str | None = os.getenv("DO_AGENT_ENDPOINT")
DO_AGENT_ACCESS_KEY: str | None = os.getenv("DO_AGENT_ACCESS_KEY")
# The agent ignores the model name, the SDK still wants one.
AGENT_MODEL: str = os.getenv("AGENT_MODEL", "n/a")

# ---------------------------------------------------------------------------
# Query defaults
# ---------------------------------------------------------------------------
VALID_STATUSES: Tuple[str, ...] = ("open", "closed", "all")
DEFAULT_STATUS: str = "open"
DEFAULT_WINDOW_DAYS: int = 7
MIN_WINDOW_DAYS: int = 1
MAX_WINDOW_DAYS: int = 365

# Categories covered by the agent's knowledge base
SUPPORTED_CATEGORIES: Tuple[str, ...] = ("wildfires", "severeStorms", "volcanoes")

# ---------------------------------------------------------------------------
# Language
# ---------------------------------------------------------------------------
SUPPORTED_LANGS: Tuple[str, ...] = ("es", "en")
DEFAULT_LANG: str = "es"

# ---------------------------------------------------------------------------
# Re-exported names
# ---------------------------------------------------------------------------
__all__ = [
    # catalog
    "EONET_API_URL",
    "EONET_TIMEOUT_SECONDS",
    # agent
    "DO_AGENT_ENDPOINT",
    "DO_AGENT_ACCESS_KEY",
    "AGENT_MODEL",
    # query
    "VALID_STATUSES",
    "DEFAULT_STATUS",
    "DEFAULT_WINDOW_DAYS",
    "MIN_WINDOW_DAYS",
    "MAX_WINDOW_DAYS",
    "SUPPORTED_CATEGORIES",
    # language
    "SUPPORTED_LANGS",
    "DEFAULT_LANG",
]
