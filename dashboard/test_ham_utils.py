from unittest.mock import patch

import requests
from django.test import SimpleTestCase

from .exceptions import DataUnavailableError
from .ham_utils import (
    is_valid_callsign,
    lookup_callsign,
    normalize_callsign,
    parse_callook,
    parse_hamdb,
)

CALLOOK_VALID = {
    "status": "VALID",
    "type": "PERSON",
    "current": {"callsign": "KJ5IRQ", "operClass": "EXTRA"},
    "name": "JOHN Q DOE",
    "address": {"line1": "123 MAIN ST", "line2": "DALLAS, TX 75201", "attn": ""},
    "location": {"latitude": "32.78", "longitude": "-96.80", "gridsquare": "EM12dx"},
    "otherInfo": {"expiryDate": "12/31/2030"},
}

CALLOOK_INVALID = {"status": "INVALID"}

HAMDB_FOUND = {
    "hamdb": {
        "version": "1",
        "callsign": {
            "call": "VE3XYZ",
            "class": "",
            "expires": "",
            "grid": "FN03",
            "fname": "JANE",
            "mi": "",
            "name": "SMITH",
            "state": "ON",
            "country": "Canada",
        },
        "messages": {"status": "OK"},
    }
}

HAMDB_NOT_FOUND = {
    "hamdb": {
        "version": "1",
        "callsign": {"call": "NOT_FOUND"},
        "messages": {"status": "NOT_FOUND"},
    }
}


class CallsignFormatTests(SimpleTestCase):

    def test_normalize(self):
        self.assertEqual(normalize_callsign("  kj5irq "), "KJ5IRQ")

    def test_portable_suffix(self):
        self.assertEqual(normalize_callsign("kj5irq/p"), "KJ5IRQ")

    def test_portable_prefix(self):
        self.assertEqual(normalize_callsign("VE3/W1AW"), "W1AW")

    def test_valid(self):
        for cs in ("W1AW", "KJ5IRQ", "VE3XYZ", "2E0ABC"):
            self.assertTrue(is_valid_callsign(cs), cs)

    def test_invalid(self):
        for cs in ("", "HELLO", "12345", "K"):
            self.assertFalse(is_valid_callsign(cs), cs)


class ParserTests(SimpleTestCase):

    def test_callook(self):
        record = parse_callook(CALLOOK_VALID)
        self.assertEqual(record.callsign, "KJ5IRQ")
        self.assertEqual(record.name, "John Q Doe")
        self.assertEqual(record.state, "TX")
        self.assertEqual(record.country, "United States")
        self.assertEqual(record.grid, "EM12dx")
        self.assertEqual(record.license_class, "Amateur Extra")
        self.assertEqual(record.expires, "12/31/2030")
        self.assertEqual(record.qrz_url, "https://www.qrz.com/db/KJ5IRQ")

    def test_callook_invalid(self):
        self.assertIsNone(parse_callook(CALLOOK_INVALID))

    def test_hamdb(self):
        record = parse_hamdb(HAMDB_FOUND)
        self.assertEqual(record.callsign, "VE3XYZ")
        self.assertEqual(record.name, "Jane Smith")
        self.assertEqual(record.country, "Canada")
        self.assertEqual(record.license_class, "")

    def test_hamdb_not_found(self):
        self.assertIsNone(parse_hamdb(HAMDB_NOT_FOUND))

    def test_as_dict_includes_qrz_url(self):
        data = parse_callook(CALLOOK_VALID).as_dict()
        self.assertEqual(data["qrz_url"], "https://www.qrz.com/db/KJ5IRQ")
        self.assertEqual(data["license_class"], "Amateur Extra")


class LookupTests(SimpleTestCase):

    @patch("dashboard.ham_utils.query_hamdb")
    @patch("dashboard.ham_utils.query_callook")
    def test_callook_hit(self, mock_callook, mock_hamdb):
        mock_callook.return_value = CALLOOK_VALID

        record, error = lookup_callsign("kj5irq")

        self.assertIsNone(error)
        self.assertEqual(record.callsign, "KJ5IRQ")
        mock_callook.assert_called_once_with("KJ5IRQ")
        mock_hamdb.assert_not_called()

    @patch("dashboard.ham_utils.query_hamdb")
    @patch("dashboard.ham_utils.query_callook")
    def test_falls_back_to_hamdb(self, mock_callook, mock_hamdb):
        mock_callook.return_value = CALLOOK_INVALID
        mock_hamdb.return_value = HAMDB_FOUND

        record, error = lookup_callsign("VE3XYZ")

        self.assertIsNone(error)
        self.assertEqual(record.country, "Canada")

    @patch("dashboard.ham_utils.query_hamdb")
    @patch("dashboard.ham_utils.query_callook")
    def test_not_found(self, mock_callook, mock_hamdb):
        mock_callook.return_value = CALLOOK_INVALID
        mock_hamdb.return_value = HAMDB_NOT_FOUND

        record, error = lookup_callsign("W9ZZZ")

        self.assertIsNone(record)
        self.assertIn("W9ZZZ", error)

    @patch("dashboard.ham_utils.query_callook")
    def test_malformed_callsign_skips_network(self, mock_callook):
        record, error = lookup_callsign("hello")

        self.assertIsNone(record)
        self.assertIsNotNone(error)
        mock_callook.assert_not_called()

    @patch("dashboard.ham_utils.query_callook")
    def test_directory_down(self, mock_callook):
        mock_callook.side_effect = requests.Timeout("timed out")

        with self.assertRaises(DataUnavailableError):
            lookup_callsign("KJ5IRQ")

    @patch("dashboard.ham_utils.query_callook")
    def test_non_json_answer(self, mock_callook):
        mock_callook.side_effect = ValueError("Expecting value")

        with self.assertRaises(DataUnavailableError):
            lookup_callsign("KJ5IRQ")
