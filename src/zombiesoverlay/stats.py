"""Zombies (Arcade) statistics extracted from a Hypixel player document."""

from dataclasses import dataclass
from typing import Any, Optional

NOT_AVAILABLE = "N/A"
AA_MAX_ROUND = 105


def format_time(seconds: Optional[int]) -> str:
    """Personal best as M:SS."""
    if seconds is None:
        return NOT_AVAILABLE
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


def format_time_aa(seconds: Optional[int]) -> str:
    """Alien Arcadium personal best as Hh:MM, or bare minutes under an hour."""
    if seconds is None:
        return NOT_AVAILABLE
    hours, rest = divmod(int(seconds), 3600)
    minutes = rest // 60
    if hours > 0:
        return f"{hours}h:{minutes:02d}"
    return str(minutes)


@dataclass
class PlayerStats:
    """Zombies stats shown in the roster table."""
    player: str
    wins: int = 0
    wins_bb: int = 0
    wins_de: int = 0
    wins_aa: int = 0
    wins_pr: int = 0
    best_aa: int = 0
    kills: int = 0
    deaths: int = 0
    kd_ratio: float = 0
    accuracy: str = NOT_AVAILABLE
    pb_de: str = NOT_AVAILABLE
    pb_bb: str = NOT_AVAILABLE
    pb_aa: str = NOT_AVAILABLE
    pb_pr: str = NOT_AVAILABLE

    @classmethod
    def from_player(cls, name: str, data: dict[str, Any]) -> "PlayerStats":
        """Build stats from a Hypixel response or its ``player`` object.

        Missing sections yield zeroed stats rather than an error.
        """
        player = data.get("player") or data
        arcade = ((player.get("stats") or {}).get("Arcade")) or {}

        hit = arcade.get("bullets_hit_zombies", 0)
        shot = arcade.get("bullets_shot_zombies", 0)
        kills = arcade.get("zombie_kills_zombies", 0)
        deaths = arcade.get("deaths_zombies", 0)

        return cls(
            player=name,
            wins=arcade.get("wins_zombies", 0),
            wins_bb=arcade.get("wins_zombies_badblood", 0),
            wins_de=arcade.get("wins_zombies_deadend", 0),
            wins_aa=arcade.get("wins_zombies_alienarcadium", 0),
            wins_pr=arcade.get("wins_zombies_prison", 0),
            best_aa=arcade.get("best_round_zombies_alienarcadium", 0),
            kills=kills,
            deaths=deaths,
            kd_ratio=round(kills / deaths, 2) if deaths else kills,
            accuracy=f"{hit / shot * 100:.2f}%" if shot else NOT_AVAILABLE,
            pb_de=format_time(arcade.get("fastest_time_30_zombies_deadend_normal")),
            pb_bb=format_time(arcade.get("fastest_time_30_zombies_badblood_normal")),
            pb_aa=format_time_aa(arcade.get("fastest_time_30_zombies_alienarcadium_normal")),
            pb_pr=format_time(arcade.get("fastest_time_30_zombies_prison_normal")),
        )


def wins_with_pb(wins: int, pb: str) -> str:
    """``12 (PB 25:03)`` when there is a PB, else just the win count."""
    if wins > 0 and pb != NOT_AVAILABLE:
        return f"{wins} (PB {pb})"
    return str(wins)


def best_aa_display(stats: PlayerStats) -> str:
    """Best Alien Arcadium result; players who finished show wins instead."""
    if stats.best_aa == AA_MAX_ROUND:
        if stats.wins_aa > 0 and stats.pb_aa != NOT_AVAILABLE:
            return f"{stats.wins_aa} wins (PB {stats.pb_aa})"
        return f"{stats.wins_aa} wins"
    return f"round {stats.best_aa}"
