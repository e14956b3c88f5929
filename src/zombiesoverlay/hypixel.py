"""Hypixel public API client with throttling and a short-lived player cache."""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

BASE_URL = "https://api.hypixel.net"
CACHE_TTL_SECONDS = 5 * 60
REQUEST_TIMEOUT = 10

# Request spacing in seconds; widened when the key is close to its quota
MIN_REQUEST_DELAY = 0.1
LOW_QUOTA_REQUEST_DELAY = 0.5
LOW_QUOTA_THRESHOLD = 10
HEALTHY_QUOTA_THRESHOLD = 50

MIN_KEY_LENGTH = 30


class HypixelErrorCode(Enum):
    """Failure classes for Hypixel API calls."""
    API_KEY_MISSING = "API_KEY_MISSING"
    API_KEY_EXPIRED = "API_KEY_EXPIRED"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    HYPIXEL_API_UNAVAILABLE = "HYPIXEL_API_UNAVAILABLE"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    NETWORK_ERROR = "NETWORK_ERROR"
    HTTP_ERROR = "HTTP_ERROR"
    HYPIXEL_API_ERROR = "HYPIXEL_API_ERROR"


# Errors that mean the API as a whole is unusable, not just one player
CONNECTION_ERRORS = frozenset({
    HypixelErrorCode.API_KEY_MISSING,
    HypixelErrorCode.API_KEY_EXPIRED,
    HypixelErrorCode.RATE_LIMIT_EXCEEDED,
    HypixelErrorCode.HYPIXEL_API_UNAVAILABLE,
    HypixelErrorCode.INVALID_RESPONSE,
    HypixelErrorCode.NETWORK_ERROR,
})


class HypixelAPIError(Exception):
    """A Hypixel request failed.

    Attributes:
        code: Classified failure.
        detail: Extra context (HTTP status, API cause, exception text).
    """

    def __init__(self, code: HypixelErrorCode, detail: str = "") -> None:
        self.code = code
        self.detail = detail
        message = code.value if not detail else f"{code.value}: {detail}"
        super().__init__(message)


@dataclass
class KeyCheckResult:
    """Outcome of validating an API key."""
    success: bool
    cause: str = ""


class HypixelClient:
    """Client for the Hypixel v2 API.

    Requests are spaced at least MIN_REQUEST_DELAY apart, widening to
    LOW_QUOTA_REQUEST_DELAY while the RateLimit-Remaining header reports a
    nearly exhausted quota. ``get_player`` results are cached per UUID for
    CACHE_TTL_SECONDS.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        cache_ttl: float = CACHE_TTL_SECONDS,
    ) -> None:
        self.api_key = api_key.strip() if api_key else None
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "zombiesoverlay/0.1"})
        self.cache_ttl = cache_ttl

        self.min_request_delay = MIN_REQUEST_DELAY
        self.rate_limit_remaining: Optional[int] = None
        self.rate_limit_reset: Optional[int] = None

        self._last_request: float = 0.0
        self._throttle_lock = threading.Lock()
        self._player_cache: dict[str, tuple[dict[str, Any], float]] = {}

    def _throttle(self) -> None:
        """Enforce spacing between requests across threads."""
        with self._throttle_lock:
            elapsed = time.monotonic() - self._last_request
            if elapsed < self.min_request_delay:
                wait = self.min_request_delay - elapsed
                logger.debug(f"Throttling Hypixel request for {wait * 1000:.0f}ms")
                time.sleep(wait)
            self._last_request = time.monotonic()

    def _update_rate_limit(self, headers) -> None:
        remaining = headers.get("RateLimit-Remaining")
        reset = headers.get("RateLimit-Reset")
        try:
            if remaining is not None:
                self.rate_limit_remaining = int(remaining)
            if reset is not None:
                self.rate_limit_reset = int(reset)
        except ValueError:
            return

        if self.rate_limit_remaining is None:
            return
        if self.rate_limit_remaining < LOW_QUOTA_THRESHOLD:
            if self.min_request_delay != LOW_QUOTA_REQUEST_DELAY:
                logger.info(f"Low on Hypixel requests ({self.rate_limit_remaining}), slowing down")
            self.min_request_delay = LOW_QUOTA_REQUEST_DELAY
        elif self.rate_limit_remaining > HEALTHY_QUOTA_THRESHOLD:
            self.min_request_delay = MIN_REQUEST_DELAY

    def _request(
        self,
        endpoint: str,
        params: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """GET an endpoint and return the decoded body.

        Raises:
            HypixelAPIError: For every non-successful outcome.
        """
        if not self.api_key:
            raise HypixelAPIError(HypixelErrorCode.API_KEY_MISSING)

        self._throttle()

        url = f"{BASE_URL}/{endpoint}"
        try:
            response = self.session.get(
                url,
                params=params,
                headers={"API-Key": self.api_key},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.warning(f"Hypixel request to {endpoint} failed: {e}")
            raise HypixelAPIError(HypixelErrorCode.NETWORK_ERROR, str(e)) from e

        self._update_rate_limit(response.headers)

        status = response.status_code
        if status == 403:
            raise HypixelAPIError(HypixelErrorCode.API_KEY_EXPIRED)
        if status == 404:
            raise HypixelAPIError(HypixelErrorCode.PLAYER_NOT_FOUND)
        if status == 429:
            logger.warning("Hypixel rate limit exceeded")
            raise HypixelAPIError(HypixelErrorCode.RATE_LIMIT_EXCEEDED)
        if status >= 500:
            raise HypixelAPIError(HypixelErrorCode.HYPIXEL_API_UNAVAILABLE, f"HTTP {status}")
        if status != 200:
            raise HypixelAPIError(HypixelErrorCode.HTTP_ERROR, f"HTTP {status}")

        try:
            body = response.json()
        except ValueError as e:
            raise HypixelAPIError(HypixelErrorCode.INVALID_RESPONSE) from e

        if not isinstance(body, dict):
            raise HypixelAPIError(HypixelErrorCode.INVALID_RESPONSE)
        if body.get("success") is False:
            raise HypixelAPIError(
                HypixelErrorCode.HYPIXEL_API_ERROR, body.get("cause") or ""
            )
        return body

    def get_player(self, uuid: str) -> dict[str, Any]:
        """Fetch the full player document.

        Args:
            uuid: Player UUID (dashed or undashed).

        Returns:
            Response body with ``success`` and ``player`` keys.

        Raises:
            HypixelAPIError: On any failure.
        """
        cached = self._player_cache.get(uuid)
        if cached is not None:
            data, fetched_at = cached
            age = time.monotonic() - fetched_at
            if age < self.cache_ttl:
                logger.debug(f"Using cached data for {uuid} (age: {age:.0f}s)")
                return data
            del self._player_cache[uuid]

        logger.debug(f"Fetching player data for {uuid}")
        data = self._request("v2/player", {"uuid": uuid})
        self._player_cache[uuid] = (data, time.monotonic())
        return data

    def get_player_count(self) -> Optional[int]:
        """Players online across the network; also a cheap authenticated call."""
        return self._request("v2/counts").get("playerCount")

    def clear_cache(self) -> None:
        self._player_cache.clear()

    def check_key(self) -> KeyCheckResult:
        """Validate the configured API key.

        Obvious problems (missing, too short, whitespace) are caught locally;
        otherwise a cheap authenticated request decides.
        """
        key = self.api_key
        if not key:
            return KeyCheckResult(False, "API key is missing")
        if len(key) < MIN_KEY_LENGTH:
            return KeyCheckResult(False, "API key appears to be invalid (too short)")
        if any(c.isspace() for c in key):
            return KeyCheckResult(False, "API key contains invalid characters")

        try:
            self.get_player_count()
        except HypixelAPIError as e:
            causes = {
                HypixelErrorCode.API_KEY_EXPIRED: "Invalid API key",
                HypixelErrorCode.RATE_LIMIT_EXCEEDED: "Rate limit exceeded. Please try again later.",
                HypixelErrorCode.HYPIXEL_API_UNAVAILABLE: (
                    "Hypixel API is currently unavailable. Please try again later."
                ),
                HypixelErrorCode.INVALID_RESPONSE: "Invalid response from Hypixel API",
            }
            cause = causes.get(e.code) or e.detail or e.code.value
            logger.info(f"API key check failed: {cause}")
            return KeyCheckResult(False, cause)

        return KeyCheckResult(True)
