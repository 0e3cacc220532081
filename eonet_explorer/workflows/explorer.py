"""Interactive exploration workflow: filters, selection, map and explanations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Protocol, Sequence

from ..logging_config import logging as _  # noqa: F401  # ensure config applied early
from ..config import DEFAULT_LANG, DEFAULT_STATUS, DEFAULT_WINDOW_DAYS, SUPPORTED_CATEGORIES
from ..exceptions import ExplanationError, FeedError
from ..map.sync import MapSyncEngine
from ..models import Event, MapPoint, NormalizedAnswer
from ..services.aggregation import EventAggregator, build_map_points, filter_events
from ..services.answers import normalize_answer
from ..services.explanation import ExplanationReply, fetch_explanation, parse_lang
from ..services.feeds import clamp_window_days, normalize_status, parse_categories
from ..utils.geo import LatLon, extract_point

logger = logging.getLogger(__name__)

Explainer = Callable[[str, Optional[str], str], ExplanationReply]


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExplanationTicket:
    """Identifies one explanation request; only the latest one is current."""

    event_id: str
    generation: int


class SelectionController:
    """Holds the selected event id and the explanation request generation.

    Every selection change bumps the generation, which makes tickets issued
    for earlier selections stale.
    """

    def __init__(self) -> None:
        self._selected_id: Optional[str] = None
        self._generation: int = 0

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    def get_selection(self) -> Optional[str]:
        return self._selected_id

    def select(self, event_id: str) -> None:
        self._selected_id = event_id
        self._generation += 1

    def clear(self) -> None:
        self._selected_id = None
        self._generation += 1

    def invalidate(self) -> None:
        """Make every outstanding ticket stale without changing the selection."""
        self._generation += 1

    def reconcile(self, event_ids: Iterable[str]) -> bool:
        """Clear the selection if it is not among *event_ids*. Returns True if cleared."""
        if self._selected_id is None:
            return False
        if self._selected_id in set(event_ids):
            return False
        logger.info("Selected event %s is no longer listed, clearing selection", self._selected_id)
        self.clear()
        return True

    def begin_request(self) -> Optional[ExplanationTicket]:
        """Start an explanation request for the current selection."""
        if self._selected_id is None:
            return None
        self._generation += 1
        return ExplanationTicket(event_id=self._selected_id, generation=self._generation)

    def is_current(self, ticket: ExplanationTicket) -> bool:
        return ticket.generation == self._generation and ticket.event_id == self._selected_id


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------

class LangStore(Protocol):
    def load(self) -> Optional[str]: ...

    def save(self, lang: str) -> None: ...


@dataclass
class ExplanationState:
    pending: Optional[ExplanationTicket] = None
    answer: Optional[NormalizedAnswer] = None
    reply: Optional[ExplanationReply] = None
    error: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.pending is not None


@dataclass
class Filters:
    categories: List[str] = field(default_factory=lambda: list(SUPPORTED_CATEGORIES))
    status: str = DEFAULT_STATUS
    window_days: int = DEFAULT_WINDOW_DAYS
    search: str = ""


class ExplorerSession:
    """Context object for one user session.

    All mutation goes through the methods below, one discrete input at a
    time: fetch completion, list or marker click, filter change.
    """

    def __init__(
        self,
        aggregator: Optional[EventAggregator] = None,
        map_engine: Optional[MapSyncEngine] = None,
        explainer: Optional[Explainer] = None,
        lang_store: Optional[LangStore] = None,
    ) -> None:
        # EventAggregator defines __len__, so an empty one is falsy.
        self.aggregator = aggregator if aggregator is not None else EventAggregator()
        self.selection = SelectionController()
        self.map_engine = map_engine if map_engine is not None else MapSyncEngine()
        self.map_engine.on_select = self.select
        self._explainer: Explainer = explainer if explainer is not None else fetch_explanation
        self._lang_store = lang_store
        self.lang: str = parse_lang(lang_store.load()) if lang_store is not None else DEFAULT_LANG
        self.filters = Filters()
        self.explanation = ExplanationState()
        self.error: Optional[str] = None
        self._visible: List[Event] = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_aggregated_events(self) -> List[Event]:
        """Aggregated events after the title search, in feed order."""
        return list(self._visible)

    def get_map_points(self) -> List[MapPoint]:
        return build_map_points(self._visible)

    def get_selection(self) -> Optional[str]:
        return self.selection.get_selection()

    @property
    def selected_event(self) -> Optional[Event]:
        return self.aggregator.get(self.selection.selected_id)

    @property
    def selected_coordinates(self) -> Optional[LatLon]:
        event = self.selected_event
        return extract_point(event.geometry) if event else None

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    def refresh(self) -> List[Event]:
        """Re-fetch the feeds for the current filters and re-render."""
        f = self.filters
        try:
            self.aggregator.refresh(f.categories, f.status, f.window_days)
            self.error = None
        except FeedError as exc:
            logger.error("Event aggregation failed: %s", exc)
            self.error = str(exc)
        self._apply_search()
        return self.get_aggregated_events()

    def set_filters(
        self,
        categories: Optional[Sequence[str] | str] = None,
        status: Optional[str] = None,
        window_days: Optional[int] = None,
    ) -> List[Event]:
        """Change the feed query. Category or status changes drop the selection."""
        f = self.filters
        if categories is not None:
            cats = parse_categories(categories)
            if cats != f.categories:
                f.categories = cats
                self._reset_selection()
        if status is not None:
            new_status = normalize_status(status)
            if new_status != f.status:
                f.status = new_status
                self._reset_selection()
        if window_days is not None:
            f.window_days = clamp_window_days(window_days)
        return self.refresh()

    def set_search(self, query: str) -> List[Event]:
        """Re-filter the current working set by title; never re-fetches."""
        self.filters.search = query or ""
        self._apply_search()
        return self.get_aggregated_events()

    def select(self, event_id: str) -> None:
        """Select from the list or a marker click; drops any explanation."""
        if event_id not in {e.id for e in self._visible}:
            logger.warning("Ignoring selection of unlisted event %s", event_id)
            return
        self.selection.select(event_id)
        self.explanation = ExplanationState()
        self.render()

    def clear_selection(self) -> None:
        self._reset_selection()
        self.render()

    def set_lang(self, lang: str) -> None:
        self.lang = parse_lang(lang)
        if self._lang_store is not None:
            self._lang_store.save(self.lang)

    # ------------------------------------------------------------------
    # Explanations
    # ------------------------------------------------------------------
    def begin_explanation(self) -> Optional[ExplanationTicket]:
        ticket = self.selection.begin_request()
        if ticket is not None:
            self.explanation = ExplanationState(pending=ticket)
        return ticket

    def deliver_explanation(self, ticket: ExplanationTicket, reply: ExplanationReply) -> bool:
        """Accept *reply* if *ticket* is still current; stale replies are dropped."""
        if not self.selection.is_current(ticket):
            logger.info("Discarding stale explanation for event %s", ticket.event_id)
            return False
        self.explanation = ExplanationState(
            reply=reply,
            answer=normalize_answer(reply.raw_text),
        )
        return True

    def fail_explanation(self, ticket: ExplanationTicket, error: Exception) -> bool:
        if not self.selection.is_current(ticket):
            logger.info("Discarding stale explanation error for event %s", ticket.event_id)
            return False
        self.explanation = ExplanationState(error=str(error))
        return True

    def explain(self, question: Optional[str] = None) -> Optional[NormalizedAnswer]:
        """Request and apply an explanation for the selected event."""
        ticket = self.begin_explanation()
        if ticket is None:
            return None
        try:
            reply = self._explainer(ticket.event_id, question, self.lang)
        except ExplanationError as exc:
            self.fail_explanation(ticket, exc)
            return None
        self.deliver_explanation(ticket, reply)
        return self.explanation.answer

    def reset_explanation(self) -> None:
        """Forget the current answer; an in-flight reply becomes stale."""
        self.selection.invalidate()
        self.explanation = ExplanationState()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def render(self) -> None:
        self.map_engine.render(self.get_map_points(), self.selection.selected_id)

    def _apply_search(self) -> None:
        self._visible = filter_events(self.aggregator.events, self.filters.search)
        if self.selection.reconcile(e.id for e in self._visible):
            self.explanation = ExplanationState()
        self.render()

    def _reset_selection(self) -> None:
        self.selection.clear()
        self.explanation = ExplanationState()


__all__ = [
    "ExplanationTicket",
    "SelectionController",
    "LangStore",
    "ExplanationState",
    "Filters",
    "ExplorerSession",
]
