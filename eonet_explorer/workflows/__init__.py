"""Workflows composing services into user-facing flows."""

from .explorer import ExplorerSession, SelectionController  # noqa: F401

__all__ = ["ExplorerSession", "SelectionController"]
