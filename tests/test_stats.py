"""Tests for Zombies stat extraction and formatting."""

from zombiesoverlay.stats import (
    NOT_AVAILABLE,
    PlayerStats,
    best_aa_display,
    format_time,
    format_time_aa,
    wins_with_pb,
)

ARCADE = {
    "wins_zombies": 20,
    "wins_zombies_deadend": 8,
    "wins_zombies_badblood": 7,
    "wins_zombies_alienarcadium": 2,
    "wins_zombies_prison": 3,
    "best_round_zombies_alienarcadium": 105,
    "zombie_kills_zombies": 5000,
    "deaths_zombies": 200,
    "bullets_hit_zombies": 300,
    "bullets_shot_zombies": 600,
    "fastest_time_30_zombies_deadend_normal": 1503,
    "fastest_time_30_zombies_alienarcadium_normal": 3725,
}


class TestFormatting:

    def test_format_time(self):
        assert format_time(65) == "1:05"
        assert format_time(1503) == "25:03"
        assert format_time(None) == NOT_AVAILABLE

    def test_format_time_aa(self):
        assert format_time_aa(3725) == "1h:02"
        assert format_time_aa(1800) == "30"
        assert format_time_aa(None) == NOT_AVAILABLE

    def test_wins_with_pb(self):
        assert wins_with_pb(12, "25:03") == "12 (PB 25:03)"
        assert wins_with_pb(0, "25:03") == "0"
        assert wins_with_pb(3, NOT_AVAILABLE) == "3"


class TestPlayerStats:
    """Extraction from a Hypixel player document."""

    def test_from_player(self):
        stats = PlayerStats.from_player("Steve", {"player": {"stats": {"Arcade": ARCADE}}})

        assert stats.player == "Steve"
        assert stats.wins == 20
        assert stats.wins_de == 8
        assert stats.wins_bb == 7
        assert stats.wins_aa == 2
        assert stats.wins_pr == 3
        assert stats.kd_ratio == 25
        assert stats.accuracy == "50.00%"
        assert stats.pb_de == "25:03"
        assert stats.pb_bb == NOT_AVAILABLE
        assert stats.pb_aa == "1h:02"

    def test_no_arcade_stats(self):
        """Players who never played Zombies get zeroed stats."""
        stats = PlayerStats.from_player("New", {"player": {"stats": {}}})
        assert stats.wins == 0
        assert stats.kd_ratio == 0
        assert stats.accuracy == NOT_AVAILABLE

    def test_no_deaths(self):
        data = {"player": {"stats": {"Arcade": {"zombie_kills_zombies": 12}}}}
        assert PlayerStats.from_player("Pro", data).kd_ratio == 12

    def test_best_aa_finished(self):
        stats = PlayerStats.from_player("Steve", {"player": {"stats": {"Arcade": ARCADE}}})
        assert best_aa_display(stats) == "2 wins (PB 1h:02)"

    def test_best_aa_round(self):
        stats = PlayerStats(player="Alex", best_aa=30)
        assert best_aa_display(stats) == "round 30"
