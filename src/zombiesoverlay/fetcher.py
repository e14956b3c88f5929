"""Background player lookups: name -> UUID -> rank and Zombies stats.

Lookups run on a small thread pool so the log watcher never waits on the
network. Each lookup is tagged with the generation that was current when it
was requested; ``invalidate()`` starts a new generation on roster reset and
results from older generations are dropped instead of delivered.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

from zombiesoverlay.hypixel import CONNECTION_ERRORS, HypixelAPIError, HypixelClient
from zombiesoverlay.mojang import MojangClient
from zombiesoverlay.ranks import RankInfo, build_rank_info
from zombiesoverlay.stats import PlayerStats

logger = logging.getLogger(__name__)


@dataclass
class LookupResult:
    """Outcome of one player lookup."""
    name: str
    generation: int
    uuid: Optional[str] = None
    rank: Optional[RankInfo] = None
    stats: Optional[PlayerStats] = None
    error: Optional[str] = None


class PlayerLookup:
    """Resolves joined players on worker threads.

    Args:
        mojang: Name to UUID resolver.
        hypixel: Player data provider.
        on_result: Called from a worker thread with each current result.
        on_api_status: Called with (connected, reason) when Hypixel starts or
            stops answering.
        max_workers: Thread pool size.
    """

    def __init__(
        self,
        mojang: MojangClient,
        hypixel: HypixelClient,
        on_result: Callable[[LookupResult], None],
        on_api_status: Optional[Callable[[bool, str], None]] = None,
        max_workers: int = 4,
    ) -> None:
        self.mojang = mojang
        self.hypixel = hypixel
        self.on_result = on_result
        self.on_api_status = on_api_status

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="player-lookup"
        )
        self._generation = 0
        self._lock = threading.Lock()
        self._api_connected: Optional[bool] = None

    @property
    def generation(self) -> int:
        return self._generation

    def invalidate(self) -> None:
        """Mark every in-flight lookup as stale."""
        with self._lock:
            self._generation += 1
        logger.debug(f"Lookup generation is now {self._generation}")

    def is_current(self, result: LookupResult) -> bool:
        return result.generation == self._generation

    def request(self, name: str) -> Future:
        """Queue a lookup for a player name."""
        return self._executor.submit(self._run, name, self._generation)

    def lookup(self, name: str, generation: Optional[int] = None) -> LookupResult:
        """Resolve one player synchronously."""
        if generation is None:
            generation = self._generation
        result = LookupResult(name=name, generation=generation)

        uuid = self.mojang.get_uuid(name)
        if uuid is None:
            logger.info(f"No UUID found for player: {name}")
            result.error = "UUID_NOT_FOUND"
            return result
        result.uuid = uuid

        try:
            data = self.hypixel.get_player(uuid)
        except HypixelAPIError as e:
            logger.warning(f"Failed to fetch player data for {name}: {e}")
            result.error = e.code.value
            if e.code in CONNECTION_ERRORS:
                self._set_api_status(False, e.code.value)
            return result

        self._set_api_status(True, "API key valid")

        if not data.get("player"):
            # Never joined Hypixel
            result.error = "PLAYER_NOT_FOUND"
            return result

        result.rank = build_rank_info(data)
        result.stats = PlayerStats.from_player(name, data)
        return result

    def _run(self, name: str, generation: int) -> LookupResult:
        try:
            result = self.lookup(name, generation)
        except Exception as e:
            logger.error(f"Lookup for {name} failed: {e}")
            result = LookupResult(name=name, generation=generation, error=str(e))

        if not self.is_current(result):
            logger.debug(f"Discarding stale lookup for {name}")
            return result

        try:
            self.on_result(result)
        except Exception as e:
            logger.error(f"Lookup result handler error for {name}: {e}")
        return result

    def _set_api_status(self, connected: bool, reason: str) -> None:
        if self._api_connected == connected:
            return
        self._api_connected = connected
        if self.on_api_status is not None:
            try:
                self.on_api_status(connected, reason)
            except Exception as e:
                logger.error(f"API status callback error: {e}")

    def close(self) -> None:
        """Stop accepting lookups and drop queued ones."""
        self.invalidate()
        self._executor.shutdown(wait=False, cancel_futures=True)
