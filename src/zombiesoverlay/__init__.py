"""zombiesoverlay: Hypixel Zombies lobby overlay driven by the Minecraft client log."""

from typing import Optional

from zombiesoverlay.classifier import CHAT_RULES, ChatRule, classify_line, classify_message
from zombiesoverlay.delta import LogDelta, LogSnapshot, compute_delta
from zombiesoverlay.events import (
    Join,
    Leave,
    LogEvent,
    Reset,
    RosterEventBus,
    RosterSubscriber,
    ServerChange,
)
from zombiesoverlay.fetcher import LookupResult, PlayerLookup
from zombiesoverlay.hypixel import HypixelAPIError, HypixelClient, HypixelErrorCode
from zombiesoverlay.mojang import MojangClient
from zombiesoverlay.roster import PlayerRow, Roster
from zombiesoverlay.settings import Settings, get_settings
from zombiesoverlay.stats import PlayerStats
from zombiesoverlay.watcher import LogWatcher

__version__ = "0.1.0"


def create_roster_pipeline(
    log_path: Optional[str] = None,
    **watcher_kwargs,
) -> tuple[LogWatcher, RosterEventBus]:
    """Create a connected watcher -> event bus pipeline.

    Args:
        log_path: Path to Minecraft latest.log. Defaults to MINECRAFT_LOG_PATH
                 env var or the platform's .minecraft location.
        **watcher_kwargs: Passed to LogWatcher (interval, backend, on_status).

    Returns:
        Tuple of (watcher, bus). Subscribe to the bus before starting the
        watcher.

    Example:
        watcher, bus = create_roster_pipeline()
        bus.register_handler(Join, lambda e: print(e.name, "joined"))
        with watcher:
            time.sleep(10)
    """
    bus = RosterEventBus()
    watcher = LogWatcher(log_path=log_path, bus=bus, **watcher_kwargs)
    return watcher, bus


__all__ = [
    "__version__",
    "create_roster_pipeline",
    "LogWatcher",
    "LogSnapshot",
    "LogDelta",
    "compute_delta",
    "CHAT_RULES",
    "ChatRule",
    "classify_line",
    "classify_message",
    "Join",
    "Leave",
    "Reset",
    "ServerChange",
    "LogEvent",
    "RosterEventBus",
    "RosterSubscriber",
    "Roster",
    "PlayerRow",
    "PlayerLookup",
    "LookupResult",
    "MojangClient",
    "HypixelClient",
    "HypixelAPIError",
    "HypixelErrorCode",
    "PlayerStats",
    "Settings",
    "get_settings",
]
