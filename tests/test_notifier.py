"""Tests for the notifier module."""

import datetime
import unittest
from unittest.mock import MagicMock, patch

from src.events import EventInstant, EventKind, Prayer
from src.notifier import _send_plyer, event_message, notify_event

AT = datetime.datetime(2025, 3, 1, 18, 15)
MAGHRIB_ADHAN = EventInstant(Prayer.MAGHRIB, EventKind.ADHAN, AT)
MAGHRIB_IQAMA = EventInstant(Prayer.MAGHRIB, EventKind.IQAMA, AT + datetime.timedelta(minutes=15))


class TestEventMessage(unittest.TestCase):
    def test_adhan(self):
        title, message = event_message(MAGHRIB_ADHAN)
        self.assertIn("Maghrib", title)
        self.assertIn("Time to Pray", title)

    def test_iqama(self):
        title, message = event_message(MAGHRIB_IQAMA)
        self.assertIn("Iqama", title)
        self.assertIn("congregation", message)


class TestNotifyEvent(unittest.TestCase):
    @patch("src.notifier._send_plyer")
    def test_calls_send_plyer(self, mock_plyer):
        notify_event(MAGHRIB_ADHAN)
        mock_plyer.assert_called_once()
        args = mock_plyer.call_args[0]
        self.assertIn("Maghrib", args[0])

    @patch("src.notifier._send_plyer")
    def test_calls_callback(self, mock_plyer):
        cb = MagicMock()
        notify_event(MAGHRIB_IQAMA, callback=cb)
        cb.assert_called_once()
        self.assertIn("Iqama", cb.call_args[0][0])


class TestSendPlyer(unittest.TestCase):
    @patch("src.notifier.plyer_notification")
    def test_backend_failure_is_logged(self, mock_notification):
        mock_notification.notify.side_effect = NotImplementedError("no backend")
        with self.assertLogs("src.notifier", level="WARNING"):
            _send_plyer("title", "message")

    @patch("src.notifier.plyer_notification")
    def test_passes_app_name(self, mock_notification):
        _send_plyer("title", "message", timeout=5)
        kwargs = mock_notification.notify.call_args[1]
        self.assertEqual(kwargs["title"], "title")
        self.assertEqual(kwargs["timeout"], 5)
        self.assertEqual(kwargs["app_name"], "Prayer Time")


if __name__ == "__main__":
    unittest.main()
