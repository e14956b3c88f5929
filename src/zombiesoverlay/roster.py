"""Roster of players currently in the lobby, maintained from roster events."""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from zombiesoverlay.events import RosterSubscriber
from zombiesoverlay.fetcher import LookupResult
from zombiesoverlay.ranks import RankInfo
from zombiesoverlay.stats import PlayerStats

logger = logging.getLogger(__name__)


@dataclass
class PlayerRow:
    """One roster entry; lookup fields fill in as results arrive."""
    name: str
    uuid: Optional[str] = None
    rank: Optional[RankInfo] = None
    stats: Optional[PlayerStats] = None
    error: Optional[str] = None
    resolved: bool = False


class Roster(RosterSubscriber):
    """Set of present players, keyed by exact name.

    Joins of a name already present are ignored, so a roster dump after
    individual joins does not duplicate rows.

    Args:
        on_player_added: Called with the name of each newly added player,
            typically to queue a lookup.
        on_reset: Called after the roster was cleared, typically to
            invalidate in-flight lookups.
        on_change: Called after every change.
        is_current: Tells whether a lookup result belongs to the current
            roster, typically ``PlayerLookup.is_current``.
    """

    def __init__(
        self,
        on_player_added: Optional[Callable[[str], None]] = None,
        on_reset: Optional[Callable[[], None]] = None,
        on_change: Optional[Callable[[], None]] = None,
        is_current: Optional[Callable[[LookupResult], bool]] = None,
    ) -> None:
        self.on_player_added = on_player_added
        self.on_reset_callback = on_reset
        self.on_change = on_change
        self.is_current = is_current
        self.server_changes = 0
        self._rows: dict[str, PlayerRow] = {}
        self._lock = threading.Lock()

    def __contains__(self, name: str) -> bool:
        return name in self._rows

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def names(self) -> list[str]:
        return list(self._rows)

    def get(self, name: str) -> Optional[PlayerRow]:
        return self._rows.get(name)

    def sorted_rows(self) -> list[PlayerRow]:
        with self._lock:
            return [self._rows[name] for name in sorted(self._rows)]

    def on_join(self, name: str) -> None:
        with self._lock:
            if name in self._rows:
                return
            self._rows[name] = PlayerRow(name)
        logger.info(f"Player joined: {name}")
        if self.on_player_added:
            self.on_player_added(name)
        self._changed()

    def on_leave(self, name: str) -> None:
        with self._lock:
            removed = self._rows.pop(name, None)
        if removed is not None:
            logger.info(f"Player left: {name}")
            self._changed()

    def on_reset(self) -> None:
        with self._lock:
            self._rows.clear()
            # apply_lookup must never see a cleared roster with the old
            # lookup generation still current
            if self.on_reset_callback:
                self.on_reset_callback()
        logger.info("Roster cleared")
        self._changed()

    def on_server_change(self) -> None:
        self.server_changes += 1
        logger.info("Server changed")

    def apply_lookup(self, result: LookupResult) -> bool:
        """Attach lookup data to a row still on the roster.

        Returns:
            False if the player has since left or the roster was cleared,
            including a clear followed by the same player rejoining.
        """
        with self._lock:
            if self.is_current is not None and not self.is_current(result):
                return False
            row = self._rows.get(result.name)
            if row is None:
                return False
            row.uuid = result.uuid
            row.rank = result.rank
            row.stats = result.stats
            row.error = result.error
            row.resolved = True
        self._changed()
        return True

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()
