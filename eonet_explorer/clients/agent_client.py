"""Singleton accessor for the OpenAI SDK client bound to the agent endpoint."""

from __future__ import annotations

from openai import OpenAI as _OpenAIClient

from ..config import DO_AGENT_ACCESS_KEY, DO_AGENT_ENDPOINT

_client: _OpenAIClient | None = None


def get_agent_client() -> _OpenAIClient:
    """Return a singleton :class:`openai.OpenAI` pointed at the agent."""
    global _client
    if _client is None:
        if not DO_AGENT_ENDPOINT or not DO_AGENT_ACCESS_KEY:
            raise EnvironmentError(
                "DO_AGENT_ENDPOINT and DO_AGENT_ACCESS_KEY must be set in environment variables"
            )
        _client = _OpenAIClient(
            base_url=f"{DO_AGENT_ENDPOINT.rstrip('/')}/api/v1/",
            api_key=DO_AGENT_ACCESS_KEY,
        )
    return _client


__all__ = ["get_agent_client"]
