"""Mojang profile API client for player name to UUID lookups."""

import logging
import time
from typing import Optional

import requests

logger = logging.getLogger(__name__)

PROFILE_URL = "https://api.mojang.com/users/profiles/minecraft/{name}"
CACHE_TTL_SECONDS = 5 * 60
REQUEST_TIMEOUT = 10


class MojangClient:
    """Resolves Minecraft player names to UUIDs.

    Results, including "no such player", are cached for CACHE_TTL_SECONDS.
    Failures other than not-found are logged and return None without being
    cached, so the next lookup retries.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        cache_ttl: float = CACHE_TTL_SECONDS,
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "zombiesoverlay/0.1"})
        self.cache_ttl = cache_ttl
        # {lower-cased name: (uuid or None, fetched_at)}
        self._uuid_cache: dict[str, tuple[Optional[str], float]] = {}

    def _cached(self, key: str) -> tuple[bool, Optional[str]]:
        entry = self._uuid_cache.get(key)
        if entry is None:
            return False, None
        uuid, fetched_at = entry
        if time.monotonic() - fetched_at >= self.cache_ttl:
            del self._uuid_cache[key]
            return False, None
        return True, uuid

    def get_uuid(self, name: str) -> Optional[str]:
        """Look up the UUID for a player name.

        Args:
            name: Minecraft username.

        Returns:
            Undashed UUID string, or None if the player does not exist or
            the lookup failed.
        """
        if not name:
            return None

        key = name.lower()
        hit, uuid = self._cached(key)
        if hit:
            return uuid

        url = PROFILE_URL.format(name=name)
        try:
            response = self.session.get(url, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            logger.warning(f"UUID request failed for {name}: {e}")
            return None

        if response.status_code in (204, 404):
            logger.info(f"Player not found: {name}")
            self._uuid_cache[key] = (None, time.monotonic())
            return None

        if response.status_code != 200:
            logger.warning(f"Failed to fetch UUID for {name}: HTTP {response.status_code}")
            return None

        try:
            body = response.json()
        except ValueError:
            logger.warning(f"Invalid profile response for {name}")
            return None

        uuid = body.get("id") if isinstance(body, dict) else None

        if not uuid:
            return None

        self._uuid_cache[key] = (uuid, time.monotonic())
        logger.debug(f"Resolved {name} -> {uuid}")
        return uuid

    def clear_cache(self) -> None:
        self._uuid_cache.clear()
