import unittest
import os
import sys
import tempfile

import folium

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from eonet_explorer.map.folium_surface import FoliumSurface, zoom_for_bounds
from eonet_explorer.map.sync import Bounds, MapSyncEngine, MarkerVisualState
from eonet_explorer.models import MapPoint


class TestZoomForBounds(unittest.TestCase):

    def test_world_and_point(self):
        self.assertEqual(zoom_for_bounds(Bounds(-60, -180, 60, 180)), 1)
        self.assertEqual(zoom_for_bounds(Bounds(10, 10, 10, 10)), 18)

    def test_regional(self):
        # 45 degrees of longitude -> log2(8) = 3
        self.assertEqual(zoom_for_bounds(Bounds(0, 0, 10, 45)), 3)


class TestFoliumSurface(unittest.TestCase):

    def setUp(self):
        self.points = [
            MapPoint("A", "Fire", 10.0, 20.0),
            MapPoint("B", "Storm", -10.0, 60.0),
        ]
        self.surface = FoliumSurface()
        self.selected = []
        self.engine = MapSyncEngine(self.surface, on_select=self.selected.append)

    def test_engine_drives_surface(self):
        self.engine.render(self.points, None)

        self.assertEqual([m.id for m in self.surface.markers], ["A", "B"])
        self.assertEqual(self.surface.bounds, Bounds(south=-10.0, west=20.0, north=10.0, east=60.0))
        self.assertEqual(self.surface.center, (0.0, 40.0))

    def test_selection_flies_and_raises_marker(self):
        self.engine.render(self.points, None)
        self.engine.render(self.points, "A")

        self.assertIsNone(self.surface.bounds)
        self.assertEqual(self.surface.center, (10.0, 20.0))
        self.assertGreaterEqual(self.surface.zoom, 5)
        self.assertEqual(self.surface.markers[-1].id, "A")
        self.assertEqual(self.surface.markers[-1].state, MarkerVisualState.SELECTED)

    def test_dispatch_click(self):
        self.engine.render(self.points, None)
        self.assertTrue(self.surface.dispatch_click("B"))
        self.assertFalse(self.surface.dispatch_click("missing"))
        self.assertEqual(self.selected, ["B"])

    def test_to_folium(self):
        self.engine.render(self.points, "B")
        fmap = self.surface.to_folium()

        self.assertIsInstance(fmap, folium.Map)
        circles = [c for c in fmap._children.values() if isinstance(c, folium.CircleMarker)]
        self.assertEqual(len(circles), 2)
        self.assertEqual(circles[-1].options["eventId"], "B")
        self.assertEqual(circles[-1].options["visualState"], "selected")

    def test_save_writes_html(self):
        self.engine.render(self.points, None)
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "map.html")
            self.surface.save(path)
            with open(path, encoding="utf-8") as fh:
                self.assertIn("leaflet", fh.read().lower())

    def test_remove(self):
        self.engine.render(self.points, None)
        self.engine.teardown()
        self.assertTrue(self.surface.removed)
        self.assertEqual(self.surface.markers, [])


if __name__ == '__main__':
    unittest.main()
