"""Convenience re-exports for singleton SDK accessors."""

from .eonet_client import get_session as get_eonet_session  # noqa: F401
from .agent_client import get_agent_client  # noqa: F401

__all__ = [
    "get_eonet_session",
    "get_agent_client",
]
