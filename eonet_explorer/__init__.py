"""Top-level package for the eonet-explorer project.

Exposes the session object and the pure helpers most callers need, so that
`from eonet_explorer import ExplorerSession` is enough to drive the explorer.
"""

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version("eonet-explorer")
except _metadata.PackageNotFoundError:  # pragma: no cover – running from source
    __version__ = "0.0.0"

from .services.aggregation import aggregate_feeds  # convenience re-export
from .services.answers import normalize_answer
from .utils.geo import extract_point
from .workflows.explorer import ExplorerSession, SelectionController

__all__ = [
    "ExplorerSession",
    "SelectionController",
    "aggregate_feeds",
    "normalize_answer",
    "extract_point",
    "__version__",
]
