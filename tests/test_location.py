"""Tests for the location module."""

import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import MagicMock, patch

import requests

import src.location as loc_mod
from src.location import (
    DEFAULT_LOCATION,
    Location,
    clear_manual_location,
    complete_location,
    ensure_timezone,
    get_ip_location,
    get_location,
    load_manual_location,
    reverse_geocode_name,
    save_manual_location,
    search_locations,
)


def _response(payload):
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status = MagicMock()
    return resp


class TestGetIpLocation(unittest.TestCase):
    @patch("src.location.requests.get")
    def test_returns_location_on_success(self, mock_get):
        mock_get.return_value = _response({
            "status": "success",
            "city": "Jakarta",
            "regionName": "Jakarta",
            "country": "Indonesia",
            "lat": -6.2,
            "lon": 106.8,
            "timezone": "Asia/Jakarta",
        })
        loc = get_ip_location()
        self.assertEqual(loc.name, "Jakarta, Jakarta, Indonesia")
        self.assertAlmostEqual(loc.latitude, -6.2)
        self.assertEqual(loc.timezone_id, "Asia/Jakarta")

    @patch("src.location.requests.get")
    def test_falls_back_on_failure(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("Network error")
        with self.assertLogs("src.location", level="WARNING"):
            loc = get_ip_location()
        self.assertEqual(loc, DEFAULT_LOCATION)

    @patch("src.location.requests.get")
    def test_falls_back_on_api_error_status(self, mock_get):
        mock_get.return_value = _response({"status": "fail", "message": "reserved range"})
        with self.assertLogs("src.location", level="WARNING") as logs:
            loc = get_ip_location()
        self.assertEqual(loc, DEFAULT_LOCATION)
        self.assertIn("reserved range", logs.output[0])

    @patch("src.location.requests.get")
    def test_missing_timezone_is_none(self, mock_get):
        mock_get.return_value = _response({"status": "success", "lat": 1.0, "lon": 2.0})
        self.assertIsNone(get_ip_location().timezone_id)


class TestSearch(unittest.TestCase):
    @patch("src.location.requests.get")
    def test_results_have_no_timezone(self, mock_get):
        mock_get.return_value = _response([
            {"lat": "25.2048", "lon": "55.2708", "display_name": "Dubai, United Arab Emirates"},
            {"lat": "oops", "lon": "1", "display_name": "broken"},
        ])
        results = search_locations("Dubai")
        self.assertEqual(len(results), 1)
        self.assertAlmostEqual(results[0].longitude, 55.2708)
        self.assertIsNone(results[0].timezone_id)
        self.assertEqual(mock_get.call_args[1]["params"]["limit"], 5)

    @patch("src.location.requests.get")
    def test_blank_query_skips_request(self, mock_get):
        self.assertEqual(search_locations("   "), [])
        mock_get.assert_not_called()

    @patch("src.location.requests.get")
    def test_reverse_geocode_name(self, mock_get):
        mock_get.return_value = _response({"address": {"town": "Sachse", "state": "Texas", "country": "United States"}})
        self.assertEqual(reverse_geocode_name(32.97, -96.59), "Sachse, Texas, United States")

    @patch("src.location.requests.get")
    def test_reverse_geocode_failure(self, mock_get):
        mock_get.side_effect = requests.Timeout("slow")
        with self.assertLogs("src.location", level="WARNING"):
            self.assertEqual(reverse_geocode_name(0.0, 0.0), "Unknown Location")


class TestTimezone(unittest.TestCase):
    @patch("src.location.resolve_timezone", return_value="Asia/Dubai")
    def test_fills_missing_timezone(self, mock_resolve):
        loc = ensure_timezone(Location(25.2, 55.3, name="Dubai"))
        self.assertEqual(loc.timezone_id, "Asia/Dubai")
        self.assertEqual(loc.name, "Dubai")

    @patch("src.location.resolve_timezone")
    def test_keeps_existing_timezone(self, mock_resolve):
        loc = Location(25.2, 55.3, "Asia/Dubai")
        self.assertIs(ensure_timezone(loc), loc)
        mock_resolve.assert_not_called()

    @patch("src.location.resolve_timezone", return_value=None)
    def test_unresolved_stays_absent(self, mock_resolve):
        self.assertIsNone(ensure_timezone(Location(0.0, -160.0)).timezone_id)

    @patch("src.location.resolve_timezone", return_value="Asia/Dubai")
    def test_replaces_unknown_timezone(self, mock_resolve):
        with self.assertLogs("src.location", level="WARNING"):
            loc = ensure_timezone(Location(25.2, 55.3, "Not/AZone", "Dubai"))
        self.assertEqual(loc.timezone_id, "Asia/Dubai")
        mock_resolve.assert_called_once_with(25.2, 55.3)

    @patch("src.location.resolve_timezone", return_value=None)
    def test_unknown_timezone_dropped_when_unresolved(self, mock_resolve):
        with self.assertLogs("src.location", level="WARNING"):
            loc = ensure_timezone(Location(0.0, -160.0, "Not/AZone"))
        self.assertIsNone(loc.timezone_id)

    @patch("src.location.reverse_geocode_name", return_value="Dubai, United Arab Emirates")
    @patch("src.location.resolve_timezone", return_value="Asia/Dubai")
    def test_complete_location(self, mock_resolve, mock_name):
        loc = complete_location(Location(25.2, 55.3))
        self.assertEqual(loc, Location(25.2, 55.3, "Asia/Dubai", "Dubai, United Arab Emirates"))

    def test_resolve_timezone_with_timezonefinder(self):
        self.assertEqual(loc_mod.resolve_timezone(25.2048, 55.2708), "Asia/Dubai")


class TestManualLocation(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.mkdtemp()
        self._orig_config_dir = loc_mod.CONFIG_DIR
        self._orig_config_file = loc_mod.CONFIG_FILE
        loc_mod.CONFIG_DIR = self._tmpdir
        loc_mod.CONFIG_FILE = os.path.join(self._tmpdir, "location.json")

    def tearDown(self):
        loc_mod.CONFIG_DIR = self._orig_config_dir
        loc_mod.CONFIG_FILE = self._orig_config_file
        shutil.rmtree(self._tmpdir, ignore_errors=True)

    def test_save_and_load_manual_location(self):
        loc = Location(-6.5567, 106.5614, "Asia/Jakarta", "Ciseeng, Bogor")
        save_manual_location(loc)
        self.assertEqual(load_manual_location(), loc)

    def test_save_without_timezone(self):
        save_manual_location(Location(10.0, 20.0))
        self.assertIsNone(load_manual_location().timezone_id)

    def test_load_returns_none_when_no_file(self):
        self.assertIsNone(load_manual_location())

    def test_clear_manual_location(self):
        save_manual_location(Location(0.0, 0.0, "UTC", "Test"))
        self.assertIsNotNone(load_manual_location())
        clear_manual_location()
        self.assertIsNone(load_manual_location())

    def test_load_returns_none_for_invalid_json(self):
        with open(loc_mod.CONFIG_FILE, "w") as f:
            f.write("not valid json")
        with self.assertLogs("src.location", level="WARNING"):
            self.assertIsNone(load_manual_location())

    def test_load_returns_none_for_missing_keys(self):
        with open(loc_mod.CONFIG_FILE, "w") as f:
            json.dump({"name": "Test"}, f)
        with self.assertLogs("src.location", level="WARNING"):
            self.assertIsNone(load_manual_location())

    @patch("src.location.get_ip_location")
    def test_get_location_prefers_manual(self, mock_ip):
        loc = Location(1.0, 2.0, "UTC", "Manual")
        save_manual_location(loc)
        self.assertEqual(get_location(), loc)
        mock_ip.assert_not_called()

    @patch("src.location.get_ip_location", return_value=DEFAULT_LOCATION)
    def test_get_location_falls_back_to_ip(self, mock_ip):
        self.assertEqual(get_location(), DEFAULT_LOCATION)
        mock_ip.assert_called_once()


if __name__ == "__main__":
    unittest.main()
