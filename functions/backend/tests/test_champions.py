import unittest
from unittest import mock

import requests

from backend.champions import ChampionCatalog

BASE = "https://ddragon.example"

CHAMPION_JSON = {
    "data": {
        "Ahri": {"id": "Ahri", "name": "아리"},
        "MonkeyKing": {"id": "MonkeyKing", "name": "오공"},
        "Aatrox": {"id": "Aatrox", "name": "아트록스"},
    }
}


def _response(payload):
    response = mock.Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def _fake_get(url, timeout):
    if url.endswith("/api/versions.json"):
        return _response(["14.10.1", "14.9.1"])
    if url.endswith("/cdn/14.10.1/data/ko_KR/champion.json"):
        return _response(CHAMPION_JSON)
    raise AssertionError(f"unexpected url {url}")


class ChampionCatalogTests(unittest.TestCase):
    def setUp(self):
        self.now = 0.0
        self.catalog = ChampionCatalog(
            base_url=BASE, ttl_seconds=60, clock=lambda: self.now
        )

    @mock.patch("backend.champions.requests.get", side_effect=_fake_get)
    def test_search_is_sorted_and_case_insensitive(self, _get):
        self.assertEqual(self.catalog.search(""), ["아리", "아트록스", "오공"])
        self.assertEqual(self.catalog.search("아"), ["아리", "아트록스"])

    @mock.patch("backend.champions.requests.get", side_effect=_fake_get)
    def test_image_urls_use_latest_version_and_champion_id(self, _get):
        urls = self.catalog.image_urls()
        self.assertEqual(
            urls["오공"], f"{BASE}/cdn/14.10.1/img/champion/MonkeyKing.png"
        )

    @mock.patch("backend.champions.requests.get", side_effect=_fake_get)
    def test_results_are_cached_until_ttl(self, get):
        self.catalog.champions()
        self.catalog.champions()
        self.assertEqual(get.call_count, 2)

        self.now = 61.0
        self.catalog.champions()
        self.assertEqual(get.call_count, 4)

    def test_failed_refresh_keeps_previous_list(self):
        with mock.patch("backend.champions.requests.get", side_effect=_fake_get):
            self.assertEqual(len(self.catalog.champions()), 3)

        self.now = 120.0
        with mock.patch(
            "backend.champions.requests.get",
            side_effect=requests.ConnectionError("offline"),
        ):
            self.assertEqual(len(self.catalog.champions()), 3)

    @mock.patch(
        "backend.champions.requests.get",
        side_effect=requests.ConnectionError("offline"),
    )
    def test_unreachable_before_first_fetch(self, _get):
        self.assertEqual(self.catalog.search("아"), [])


if __name__ == "__main__":
    unittest.main()
