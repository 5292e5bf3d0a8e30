"""
Champion catalog backed by Riot Data Dragon, cached in process.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds


@dataclass(frozen=True)
class ChampionInfo:
    id: str
    name: str
    image_url: str


class ChampionCatalog:
    """
    Latest champion list from Data Dragon, refreshed after `ttl_seconds`.

    A failed refresh is logged and the previous list keeps being served, so
    lookups degrade to an empty result only before the first success.
    """

    def __init__(
        self,
        base_url: str = "https://ddragon.leagueoflegends.com",
        locale: str = "ko_KR",
        ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.base_url = base_url.rstrip("/")
        self.locale = locale
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._champions: list[ChampionInfo] = []
        self._fetched_at: Optional[float] = None

    def _get_json(self, url: str):
        response = requests.get(url, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json()

    def _fetch(self) -> list[ChampionInfo]:
        versions = self._get_json(f"{self.base_url}/api/versions.json")
        version = versions[0]
        data = self._get_json(
            f"{self.base_url}/cdn/{version}/data/{self.locale}/champion.json"
        )["data"]
        return [
            ChampionInfo(
                id=entry["id"],
                name=entry["name"],
                image_url=f"{self.base_url}/cdn/{version}/img/champion/{entry['id']}.png",
            )
            for entry in data.values()
        ]

    def _is_stale(self) -> bool:
        return (
            not self._champions
            or self._fetched_at is None
            or self._clock() - self._fetched_at > self.ttl_seconds
        )

    def champions(self) -> list[ChampionInfo]:
        with self._lock:
            if self._is_stale():
                try:
                    self._champions = self._fetch()
                    self._fetched_at = self._clock()
                except (requests.RequestException, KeyError, IndexError, ValueError):
                    logger.warning(
                        "Failed to refresh champions from Data Dragon", exc_info=True
                    )
            return list(self._champions)

    def search(self, query: str = "") -> list[str]:
        """Champion names containing `query` (case-insensitive), sorted."""
        needle = (query or "").lower()
        return sorted(c.name for c in self.champions() if needle in c.name.lower())

    def image_urls(self) -> dict[str, str]:
        """Champion display name -> square portrait URL."""
        return {c.name: c.image_url for c in self.champions()}
