import unittest
from unittest.mock import MagicMock, patch
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from eonet_explorer.exceptions import AggregationError, ExplanationError
from eonet_explorer.map.sync import MapSyncEngine, MarkerVisualState
from eonet_explorer.models import StructuredAnswer, UnstructuredAnswer
from eonet_explorer.services.aggregation import EventAggregator
from eonet_explorer.services.explanation import ExplanationReply
from eonet_explorer.workflows.explorer import ExplorerSession, SelectionController


def feature(event_id, title, coords=(10.0, 20.0), geometry_type="Point"):
    return {
        "type": "Feature",
        "properties": {"id": event_id, "title": title},
        "geometry": {"type": geometry_type, "coordinates": list(coords)},
    }


def feed(*features):
    return {"type": "FeatureCollection", "features": list(features)}


WILDFIRES = feed(
    feature("EONET_1", "Wildfire in Chile", (-72.0, -37.0)),
    feature("EONET_2", "Wildfire in Canada", (-120.0, 55.0)),
)
STORMS = feed(
    feature("EONET_3", "Tropical Storm Ana", geometry_type="Polygon"),
    feature("EONET_1", "Wildfire in Chile (storm feed)", (-72.0, -37.0)),
)


class TestSelectionController(unittest.TestCase):

    def test_select_and_clear(self):
        selection = SelectionController()
        self.assertIsNone(selection.get_selection())
        selection.select("A")
        self.assertEqual(selection.get_selection(), "A")
        selection.clear()
        self.assertIsNone(selection.selected_id)

    def test_reconcile_heals_dangling_selection(self):
        selection = SelectionController()
        selection.select("X")
        self.assertFalse(selection.reconcile(["X", "Y"]))
        self.assertEqual(selection.selected_id, "X")
        self.assertTrue(selection.reconcile(["Y"]))
        self.assertIsNone(selection.selected_id)

    def test_tickets_go_stale_on_new_selection(self):
        selection = SelectionController()
        self.assertIsNone(selection.begin_request())

        selection.select("A")
        ticket = selection.begin_request()
        self.assertTrue(selection.is_current(ticket))

        selection.select("B")
        self.assertFalse(selection.is_current(ticket))

    def test_newer_request_supersedes_older_one(self):
        selection = SelectionController()
        selection.select("A")
        first = selection.begin_request()
        second = selection.begin_request()
        self.assertFalse(selection.is_current(first))
        self.assertTrue(selection.is_current(second))


class TestExplorerSession(unittest.TestCase):

    def setUp(self):
        self.fetcher = MagicMock(return_value=[WILDFIRES, STORMS])
        self.surface = MagicMock()
        self.surface.zoom = 2
        self.explainer = MagicMock(
            return_value=ExplanationReply(event_id="EONET_1", raw_text='{"summary": "ok"}')
        )
        self.session = ExplorerSession(
            aggregator=EventAggregator(fetcher=self.fetcher),
            map_engine=MapSyncEngine(self.surface),
            explainer=self.explainer,
        )

    def test_injected_collaborators_are_kept_even_when_empty(self):
        aggregator = EventAggregator(fetcher=self.fetcher)
        engine = MapSyncEngine(self.surface)
        store = MagicMock()
        store.load.return_value = None

        session = ExplorerSession(aggregator=aggregator, map_engine=engine, lang_store=store)

        self.assertEqual(len(aggregator), 0)
        self.assertIs(session.aggregator, aggregator)
        self.assertIs(session.map_engine, engine)
        self.assertEqual(session.lang, "es")
        store.load.assert_called_once_with()

        session.refresh()
        self.fetcher.assert_called_once()
        self.assertEqual(len(session.aggregator), 3)

    def test_refresh_aggregates_and_renders(self):
        events = self.session.refresh()

        self.assertEqual([e.id for e in events], ["EONET_1", "EONET_2", "EONET_3"])
        self.assertEqual(events[0].title, "Wildfire in Chile")
        self.assertEqual([p.id for p in self.session.get_map_points()], ["EONET_1", "EONET_2"])
        self.assertEqual(self.surface.add_marker.call_count, 2)
        self.assertIsNone(self.session.error)
        self.fetcher.assert_called_once_with(["wildfires", "severeStorms", "volcanoes"], "open", 7)

    def test_marker_click_selects_event(self):
        self.session.refresh()
        self.session.map_engine.markers["EONET_2"].click()

        self.assertEqual(self.session.get_selection(), "EONET_2")
        self.assertEqual(self.session.selected_event.title, "Wildfire in Canada")
        self.assertEqual(self.session.selected_coordinates.lat, 55.0)
        self.assertEqual(
            self.session.map_engine.markers["EONET_2"].state, MarkerVisualState.SELECTED
        )

    def test_selecting_point_less_event(self):
        self.session.refresh()
        self.session.select("EONET_3")

        self.assertEqual(self.session.get_selection(), "EONET_3")
        self.assertIsNone(self.session.selected_coordinates)
        self.surface.fly_to.assert_not_called()

    def test_unknown_selection_is_ignored(self):
        self.session.refresh()
        self.session.select("NOPE")
        self.assertIsNone(self.session.get_selection())

    def test_search_heals_selection_without_refetch(self):
        self.session.refresh()
        self.session.select("EONET_2")

        visible = self.session.set_search("chile")

        self.assertEqual([e.id for e in visible], ["EONET_1"])
        self.assertIsNone(self.session.get_selection())
        self.assertEqual(self.fetcher.call_count, 1)
        self.assertEqual([p.id for p in self.session.get_map_points()], ["EONET_1"])

    def test_search_keeps_matching_selection(self):
        self.session.refresh()
        self.session.select("EONET_1")
        self.session.set_search("wildfire")
        self.assertEqual(self.session.get_selection(), "EONET_1")

    def test_refetch_heals_selection(self):
        self.session.refresh()
        self.session.select("EONET_2")
        self.fetcher.return_value = [STORMS]

        self.session.set_filters(window_days=30)

        self.assertIsNone(self.session.get_selection())
        self.fetcher.assert_called_with(["wildfires", "severeStorms", "volcanoes"], "open", 30)

    def test_category_change_clears_selection(self):
        self.session.refresh()
        self.session.select("EONET_1")

        self.session.set_filters(categories="wildfires")

        self.assertIsNone(self.session.get_selection())
        self.fetcher.assert_called_with(["wildfires"], "open", 7)

    def test_failed_refresh_is_retrievable_error_state(self):
        self.session.refresh()
        self.session.select("EONET_1")
        self.fetcher.side_effect = AggregationError("volcanoes failed", category="volcanoes")

        events = self.session.refresh()

        self.assertEqual(events, [])
        self.assertIn("volcanoes", self.session.error)
        self.assertIsNone(self.session.get_selection())

        self.fetcher.side_effect = None
        self.session.refresh()
        self.assertIsNone(self.session.error)

    def test_explain_structured(self):
        self.session.refresh()
        self.session.select("EONET_1")
        self.session.set_lang("en")

        answer = self.session.explain("What is it?")

        self.assertIsInstance(answer, StructuredAnswer)
        self.assertEqual(answer.document.summary, "ok")
        self.explainer.assert_called_once_with("EONET_1", "What is it?", "en")
        self.assertFalse(self.session.explanation.is_pending)

    def test_explain_unstructured(self):
        self.explainer.return_value = ExplanationReply(event_id="EONET_1", raw_text="plain words")
        self.session.refresh()
        self.session.select("EONET_1")

        answer = self.session.explain()

        self.assertIsInstance(answer, UnstructuredAnswer)
        self.assertEqual(answer.raw_text, "plain words")

    def test_explain_without_selection(self):
        self.session.refresh()
        self.assertIsNone(self.session.explain())
        self.explainer.assert_not_called()

    def test_explain_failure_is_shown_inline(self):
        self.explainer.side_effect = ExplanationError("Agent request failed")
        self.session.refresh()
        self.session.select("EONET_1")

        self.assertIsNone(self.session.explain())
        self.assertEqual(self.session.explanation.error, "Agent request failed")

    @patch('eonet_explorer.services.explanation.get_agent_client')
    @patch('eonet_explorer.services.explanation.fetch_event_detail')
    def test_missing_agent_credentials_are_shown_inline(self, mock_fetch_detail, mock_get_client):
        mock_fetch_detail.return_value = {"id": "EONET_1"}
        mock_get_client.side_effect = EnvironmentError("agent not configured")
        session = ExplorerSession(
            aggregator=EventAggregator(fetcher=self.fetcher),
            map_engine=MapSyncEngine(self.surface),
        )
        session.refresh()
        session.select("EONET_1")

        self.assertIsNone(session.explain())
        self.assertEqual(session.explanation.error, "Missing agent env vars")
        self.assertFalse(session.explanation.is_pending)

        mock_get_client.side_effect = None
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value.choices = [
            MagicMock(message=MagicMock(content='{"summary": "retry ok"}'))
        ]
        mock_client.chat.completions.create.return_value.model_dump.return_value = {}
        mock_get_client.return_value = mock_client

        answer = session.explain()
        self.assertEqual(answer.document.summary, "retry ok")
        self.assertIsNone(session.explanation.error)

    def test_stale_reply_is_discarded(self):
        self.session.refresh()
        self.session.select("EONET_1")
        ticket = self.session.begin_explanation()
        self.assertTrue(self.session.explanation.is_pending)

        self.session.select("EONET_2")
        accepted = self.session.deliver_explanation(
            ticket, ExplanationReply(event_id="EONET_1", raw_text='{"summary": "late"}')
        )

        self.assertFalse(accepted)
        self.assertIsNone(self.session.explanation.answer)
        self.assertFalse(self.session.explanation.is_pending)

    def test_stale_error_is_discarded(self):
        self.session.refresh()
        self.session.select("EONET_1")
        ticket = self.session.begin_explanation()
        self.session.clear_selection()

        self.assertFalse(self.session.fail_explanation(ticket, ExplanationError("late")))
        self.assertIsNone(self.session.explanation.error)

    def test_reset_explanation_invalidates_in_flight_reply(self):
        self.session.refresh()
        self.session.select("EONET_1")
        ticket = self.session.begin_explanation()

        self.session.reset_explanation()

        self.assertFalse(self.session.deliver_explanation(
            ticket, ExplanationReply(event_id="EONET_1", raw_text="{}")
        ))
        self.assertEqual(self.session.get_selection(), "EONET_1")

    def test_lang_store_hooks(self):
        store = MagicMock()
        store.load.return_value = "en"
        session = ExplorerSession(
            aggregator=EventAggregator(fetcher=self.fetcher),
            explainer=self.explainer,
            lang_store=store,
        )
        self.assertEqual(session.lang, "en")

        session.set_lang("de")
        self.assertEqual(session.lang, "es")
        store.save.assert_called_once_with("es")


if __name__ == '__main__':
    unittest.main()
