"""Spin payload decoding and deduplication tests."""

import unittest

from wheel_overlay.dedup import EventDeduplicator
from wheel_overlay.events import MalformedEventError, SpinEvent


def _payload(**overrides):
    payload = {"wheelId": "w1", "winningIndex": 1, "winningLabel": "B", "timestamp": 1000}
    payload.update(overrides)
    return payload


# ============================================================
# Payload codec
# ============================================================

class TestSpinEventPayload(unittest.TestCase):

    def test_valid_payload(self):
        event = SpinEvent.from_payload(_payload())
        self.assertEqual(event, SpinEvent("w1", 1, "B", 1000))
        self.assertEqual(event.to_payload(), _payload())

    def test_float_timestamp_accepted(self):
        self.assertEqual(SpinEvent.from_payload(_payload(timestamp=12.5)).timestamp, 12.5)

    def test_missing_fields(self):
        payload = _payload()
        del payload["winningIndex"]
        with self.assertRaises(MalformedEventError):
            SpinEvent.from_payload(payload)

    def test_rejects_bad_field_types(self):
        bad = [
            _payload(wheelId=""),
            _payload(wheelId=7),
            _payload(winningIndex=True),
            _payload(winningIndex=-1),
            _payload(winningIndex=1.0),
            _payload(winningLabel=None),
            _payload(timestamp="1000"),
            _payload(timestamp=False),
            _payload(timestamp=float("nan")),
            _payload(timestamp=float("inf")),
            _payload(timestamp=float("-inf")),
        ]
        for payload in bad:
            with self.subTest(payload=payload):
                with self.assertRaises(MalformedEventError):
                    SpinEvent.from_payload(payload)

    def test_rejects_non_mapping(self):
        with self.assertRaises(MalformedEventError):
            SpinEvent.from_payload(["w1", 1, "B", 1000])
        with self.assertRaises(MalformedEventError):
            SpinEvent.from_payload(None)


# ============================================================
# Deduplication
# ============================================================

class TestEventDeduplicator(unittest.TestCase):

    def setUp(self):
        self.dedup = EventDeduplicator()
        self.event = SpinEvent("w1", 0, "A", 1000)

    def test_accepts_once(self):
        self.assertTrue(self.dedup.should_process(self.event, "w1", False))
        self.assertFalse(self.dedup.should_process(self.event, "w1", False))
        self.assertEqual(self.dedup.last_processed("w1"), 1000)

    def test_new_timestamp_accepted(self):
        self.dedup.should_process(self.event, "w1", False)
        later = SpinEvent("w1", 1, "B", 1001)
        self.assertTrue(self.dedup.should_process(later, "w1", False))

    def test_other_wheel_ignored(self):
        self.assertFalse(self.dedup.should_process(self.event, "w2", False))
        self.assertFalse(self.dedup.should_process(self.event, None, False))
        self.assertIsNone(self.dedup.last_processed("w1"))

    def test_dropped_while_spinning_is_not_recorded(self):
        with self.assertLogs("wheel_overlay.dedup", level="INFO"):
            self.assertFalse(self.dedup.should_process(self.event, "w1", True))
        self.assertIsNone(self.dedup.last_processed("w1"))

    def test_duplicate_while_spinning_is_silent_reject(self):
        self.dedup.should_process(self.event, "w1", False)
        self.assertFalse(self.dedup.should_process(self.event, "w1", True))

    def test_forget(self):
        self.dedup.should_process(self.event, "w1", False)
        self.dedup.forget("w1")
        self.assertTrue(self.dedup.should_process(self.event, "w1", False))
        self.dedup.forget("unknown")


if __name__ == "__main__":
    unittest.main(verbosity=2)
