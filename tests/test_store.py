"""In-memory wheel store tests."""

import tempfile
import unittest
from pathlib import Path

import yaml

from wheel_overlay.segments import InvalidWheelError, WheelNotFoundError
from wheel_overlay.store import InMemoryWheelStore, load_wheels, wheels_from_config


SEGMENTS = [
    {"label": "A", "color": "#ff0000"},
    {"label": "B", "color": "#00ff00", "weight": 3},
]


class TestInMemoryWheelStore(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryWheelStore()

    def test_created_wheels_are_inactive_with_defaults(self):
        wheel = self.store.create_wheel("s1", "First", SEGMENTS)
        self.assertFalse(wheel.is_active)
        self.assertEqual(wheel.spin_duration, 5.0)
        self.assertTrue(wheel.sound_enabled)
        self.assertAlmostEqual(wheel.sound_volume, 0.7)
        self.assertEqual([s.weight for s in wheel.segments], [1.0, 3.0])
        self.assertIsNone(self.store.get_active_wheel("s1"))

    def test_list_newest_first(self):
        first = self.store.create_wheel("s1", "First", SEGMENTS)
        second = self.store.create_wheel("s1", "Second", SEGMENTS)
        self.store.create_wheel("s2", "Elsewhere", SEGMENTS)
        self.assertEqual([w.id for w in self.store.list_wheels("s1")], [second.id, first.id])

    def test_activation_is_exclusive_within_session(self):
        first = self.store.create_wheel("s1", "First", SEGMENTS)
        second = self.store.create_wheel("s1", "Second", SEGMENTS)
        other = self.store.create_wheel("s2", "Other", SEGMENTS)
        self.store.activate(other.id)

        self.store.activate(first.id)
        self.store.activate(second.id)

        active = [w.id for w in self.store.list_wheels("s1") if w.is_active]
        self.assertEqual(active, [second.id])
        self.assertEqual(self.store.get_active_wheel("s1").id, second.id)
        self.assertTrue(self.store.get_wheel(other.id).is_active)

    def test_update_fields(self):
        wheel = self.store.create_wheel("s1", "First", SEGMENTS)
        updated = self.store.update_wheel(wheel.id, name="Renamed", sound_volume=4, spin_duration=3)
        self.assertEqual(updated.name, "Renamed")
        self.assertEqual(updated.sound_volume, 1.0)
        self.assertEqual(updated.spin_duration, 3.0)
        self.assertEqual(self.store.get_wheel(wheel.id), updated)

    def test_update_rejects_unknown_and_invalid_fields(self):
        wheel = self.store.create_wheel("s1", "First", SEGMENTS)
        with self.assertRaises(InvalidWheelError):
            self.store.update_wheel(wheel.id, colour="red")
        with self.assertRaises(InvalidWheelError):
            self.store.update_wheel(wheel.id, spin_duration=0)
        with self.assertRaises(InvalidWheelError):
            self.store.update_wheel(wheel.id, segments=[{"label": "NoColor"}])

    def test_missing_wheel(self):
        with self.assertRaises(WheelNotFoundError):
            self.store.get_wheel("nope")
        with self.assertRaises(WheelNotFoundError):
            self.store.list_segments("nope")

    def test_delete(self):
        wheel = self.store.create_wheel("s1", "First", SEGMENTS)
        self.store.delete_wheel(wheel.id)
        self.assertEqual(self.store.list_wheels("s1"), [])
        with self.assertRaises(WheelNotFoundError):
            self.store.delete_wheel(wheel.id)

    def test_create_validates_duration_and_clamps_volume(self):
        with self.assertRaises(InvalidWheelError):
            self.store.create_wheel("s1", "Backwards", SEGMENTS, spin_duration=-3)
        with self.assertRaises(InvalidWheelError):
            self.store.create_wheel("s1", "Instant", SEGMENTS, spin_duration=0)
        with self.assertRaises(InvalidWheelError):
            self.store.create_wheel("s1", "Slow", SEGMENTS, spin_duration="slow")
        self.assertEqual(self.store.list_wheels("s1"), [])

        loud = self.store.create_wheel("s1", "Loud", SEGMENTS, sound_volume=7.5)
        quiet = self.store.create_wheel("s1", "Quiet", SEGMENTS, sound_volume=-1)
        self.assertEqual(loud.sound_volume, 1.0)
        self.assertEqual(quiet.sound_volume, 0.0)

    def test_create_rejects_duplicates_and_missing_fields(self):
        self.store.create_wheel("s1", "First", SEGMENTS, wheel_id="fixed")
        with self.assertRaises(InvalidWheelError):
            self.store.create_wheel("s1", "Again", SEGMENTS, wheel_id="fixed")
        with self.assertRaises(InvalidWheelError):
            self.store.create_wheel("s1", "", SEGMENTS)
        with self.assertRaises(InvalidWheelError):
            self.store.create_wheel("s1", "Bad", "A,B")


class TestConfigSeeding(unittest.TestCase):

    def test_wheels_from_config_activates_first_flagged(self):
        store = InMemoryWheelStore()
        wheels = wheels_from_config(
            store,
            "s1",
            [
                {"id": "one", "name": "One", "segments": SEGMENTS, "active": True},
                {"id": "two", "segments": SEGMENTS, "active": True, "sound_enabled": False},
            ],
        )
        self.assertEqual([w.id for w in wheels], ["one", "two"])
        self.assertTrue(wheels[0].is_active)
        self.assertFalse(wheels[1].is_active)
        self.assertEqual(wheels[1].name, "two")
        self.assertFalse(wheels[1].sound_enabled)

    def test_load_wheels_from_yaml(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "wheels.yaml"
            path.write_text(
                yaml.safe_dump({"wheels": [{"id": "y", "name": "Yaml", "segments": SEGMENTS}]}),
                encoding="utf-8",
            )
            store = InMemoryWheelStore()
            wheels = load_wheels(store, "s1", path)
        self.assertEqual(wheels[0].labels, ["A", "B"])
        self.assertEqual(store.list_segments("y")[1].weight, 3.0)

    def test_load_wheels_missing_file(self):
        with self.assertRaises(WheelNotFoundError):
            load_wheels(InMemoryWheelStore(), "s1", Path("/nonexistent/wheels.yaml"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
