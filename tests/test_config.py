"""Overlay configuration loading and session wiring tests."""

import tempfile
import unittest
from pathlib import Path

import yaml

from wheel_overlay.bus import LocalBus
from wheel_overlay.overlay_app import (
    CONFIG_PATH,
    OverlayConfigError,
    build_session,
    load_config,
    parse_config,
)
from wheel_overlay.scheduler import FrameScheduler


MINIMAL = {
    "session_id": "s1",
    "wheels": [
        {
            "id": "w",
            "active": True,
            "segments": [{"label": "A", "color": "#ff0000"}, {"label": "B", "color": "#00ff00"}],
        }
    ],
}


class TestParseConfig(unittest.TestCase):

    def test_defaults(self):
        config = parse_config(dict(MINIMAL), Path("/tmp"))
        self.assertEqual(config.session_id, "s1")
        self.assertEqual(config.window_size, (800, 800))
        self.assertEqual(config.target_fps, 60)
        self.assertEqual(config.winner_display, 5.0)
        self.assertEqual(config.extra_full_spins, 5)
        self.assertEqual(config.wheel_radius, 340)
        self.assertTrue(config.audio_enabled)
        self.assertEqual(config.winner_sound, "sounds/wheel-winner.mp3")
        self.assertIsNone(config.spin_log)
        self.assertIsNone(config.seed)

    def test_missing_keys(self):
        with self.assertRaises(OverlayConfigError):
            parse_config({"session_id": "s1"}, Path("/tmp"))
        with self.assertRaises(OverlayConfigError):
            parse_config({"wheels": MINIMAL["wheels"]}, Path("/tmp"))

    def test_invalid_values(self):
        bad = [
            {"session_id": "  "},
            {"window": [800, 600]},
            {"window": {"width": 0, "height": 600}},
            {"target_fps": "fast"},
            {"timers": {"winner_display": 0}},
            {"spin": {"extra_full_spins": -1}},
            {"spin": {"seed": "abc"}},
            {"audio": "on"},
            {"wheels": []},
            {"wheels": [{"id": "w", "segments": "A,B"}]},
        ]
        for override in bad:
            data = dict(MINIMAL)
            data.update(override)
            with self.subTest(override=override):
                with self.assertRaises(OverlayConfigError):
                    parse_config(data, Path("/tmp"))

    def test_relative_spin_log_resolved_against_config_dir(self):
        data = dict(MINIMAL, spin_log="logs/spins.log")
        base_dir = Path(tempfile.gettempdir()).resolve()
        config = parse_config(data, base_dir)
        self.assertEqual(config.spin_log, base_dir / "logs" / "spins.log")


class TestLoadConfig(unittest.TestCase):

    def test_load_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text(yaml.safe_dump(dict(MINIMAL, spin={"seed": 4})), encoding="utf-8")
            config = load_config(path)
        self.assertEqual(config.seed, 4)
        self.assertEqual(config.base_dir, path.parent)

    def test_missing_file(self):
        with self.assertRaises(OverlayConfigError):
            load_config(Path("/nonexistent/config.yaml"))

    def test_root_must_be_mapping(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("- just\n- a list\n", encoding="utf-8")
            with self.assertRaises(OverlayConfigError):
                load_config(path)

    def test_bundled_config_loads(self):
        config = load_config(CONFIG_PATH)
        self.assertEqual(config.session_id, "demo-session")
        self.assertEqual(len(config.wheels), 2)


class TestBuildSession(unittest.TestCase):

    def test_display_shows_configured_active_wheel(self):
        config = parse_config(dict(MINIMAL, spin={"seed": 1}), Path("/tmp"))
        bus = LocalBus()
        controller, display = build_session(config, bus, FrameScheduler())
        try:
            self.assertEqual(display.active_wheel.id, "w")
            event = controller.spin()
            self.assertEqual(display.animator.last_processed_event_id, event.timestamp)
        finally:
            display.close()

    def test_invalid_wheel_raises_config_error(self):
        data = dict(MINIMAL, wheels=[{"id": "w", "segments": [{"label": "A"}]}])
        config = parse_config(data, Path("/tmp"))
        with self.assertRaises(OverlayConfigError):
            build_session(config, LocalBus(), FrameScheduler())


if __name__ == "__main__":
    unittest.main(verbosity=2)
