"""Hypixel rank extraction and Minecraft colour formatting.

Ranks are rendered the way the game shows them, as ``§``-prefixed colour
codes (``§b[MVP§c+§b]``); ``mc_to_markup`` turns those into Rich markup for
the terminal.
"""

import re
from dataclasses import dataclass
from typing import Any, NamedTuple, Optional

from rich.markup import escape

DEFAULT_RANK = "NON"


class McColor(NamedTuple):
    """A Minecraft colour as a section-sign code and a hex value."""
    mc: str
    hex: str


GRAY = McColor("§7", "#BAB6B6")
GOLD = McColor("§6", "#FFAA00")

# Minecraft colour code -> hex, for terminal rendering
CODE_HEX = {
    "0": "#000000",
    "1": "#0000AA",
    "2": "#00AA00",
    "3": "#00AAAA",
    "4": "#AA0000",
    "5": "#AA00AA",
    "6": "#FFAA00",
    "7": "#AAAAAA",
    "8": "#555555",
    "9": "#5555FF",
    "a": "#55FF55",
    "b": "#55FFFF",
    "c": "#FF5555",
    "d": "#FF55FF",
    "e": "#FFFF55",
    "f": "#FFFFFF",
}

# Hypixel colour names (rankPlusColor / monthlyRankColor) -> colour
NAMED_COLORS = {
    "RED": McColor("§c", "#FF5555"),
    "GOLD": McColor("§6", "#FFAA00"),
    "GREEN": McColor("§a", "#55FF55"),
    "YELLOW": McColor("§e", "#FFFF55"),
    "LIGHT_PURPLE": McColor("§d", "#FF55FF"),
    "WHITE": McColor("§f", "#F2F2F2"),
    "BLUE": McColor("§9", "#5555FF"),
    "DARK_GREEN": McColor("§2", "#00AA00"),
    "DARK_RED": McColor("§4", "#AA0000"),
    "DARK_AQUA": McColor("§3", "#00AAAA"),
    "DARK_PURPLE": McColor("§5", "#AA00AA"),
    "DARK_GRAY": McColor("§8", "#555555"),
    "DARK_BLUE": McColor("§1", "#0000AA"),
    "GRAY": McColor("§7", "#AAAAAA"),
    "AQUA": McColor("§b", "#55FFFF"),
    "BLACK": McColor("§0", "#000000"),
}

# Plus colours used when the player never picked one
DEFAULT_PLUS_COLORS = {
    "MVP+": McColor("§c", "#FF5555"),
    "MVP++": McColor("§6", "#FFAA00"),
    "VIP+": McColor("§6", "#FFAA00"),
    "PIG+++": McColor("§b", "#FF55FF"),
}

PACKAGE_RANK_NAMES = (
    ("SUPERSTAR", "MVP++"),
    ("VIP_PLUS", "VIP+"),
    ("MVP_PLUS", "MVP+"),
    ("NONE", DEFAULT_RANK),
)

STAFF_AND_SPECIAL_RANKS = {
    "YOUTUBE": "§c[§fYOUTUBE§c]",
    "HELPER": "§9[HELPER]",
    "MOD": "§2[MOD]",
    "ADMIN": "§c[ADMIN]",
    "OWNER": "§c[OWNER]",
    "SLOTH": "§c[SLOTH]",
    "ANGUS": "§c[ANGUS]",
    "APPLE": "§6[APPLE]",
    "MOJANG": "§6[MOJANG]",
    "BUILD TEAM": "§3[BUILD TEAM]",
    "EVENTS": "§6[EVENTS]",
}

SECTION_CODE = re.compile(r"§.|\[|\]")


@dataclass
class RankInfo:
    """Everything needed to draw a player's rank prefix."""
    rank: str
    rank_color_code: str
    plus_color: McColor
    monthly_rank_color: Optional[McColor]
    formatted_rank: str


def _package_rank_name(value: str) -> str:
    for raw, display in PACKAGE_RANK_NAMES:
        value = value.replace(raw, display)
    return value


def get_rank(data: Optional[dict[str, Any]]) -> str:
    """Display rank for a Hypixel player document.

    Accepts either the full API response or its ``player`` object. Staff
    ranks and custom prefixes win over purchased package ranks.
    """
    if not isinstance(data, dict):
        return DEFAULT_RANK
    player = data.get("player") or data
    if not isinstance(player, dict):
        return DEFAULT_RANK

    rank = DEFAULT_RANK
    if player.get("monthlyPackageRank") == "SUPERSTAR":
        rank = "MVP++"
    elif player.get("newPackageRank"):
        rank = _package_rank_name(player["newPackageRank"])
    elif player.get("packageRank"):
        rank = _package_rank_name(player["packageRank"])

    staff = player.get("rank")
    if staff and staff != "NORMAL":
        rank = staff.replace("MODERATOR", "MOD")

    prefix = player.get("prefix")
    if prefix:
        clean = SECTION_CODE.sub("", prefix)
        if clean:
            rank = clean

    if rank == "YOUTUBER":
        rank = "YOUTUBE"
    if rank in ("", "NONE"):
        rank = DEFAULT_RANK
    return rank


def get_plus_color(rank: str, plus_color: Optional[str]) -> McColor:
    """Colour of the ``+`` signs in a rank, gray when unknown."""
    if plus_color is None or rank == "PIG+++":
        return DEFAULT_PLUS_COLORS.get(rank, GRAY)
    if not isinstance(plus_color, str):
        return GRAY
    return NAMED_COLORS.get(plus_color.upper(), GRAY)


def get_monthly_rank_color(value: Optional[str]) -> McColor:
    """Bracket colour for MVP++, gold unless the player chose aqua."""
    if isinstance(value, str):
        return NAMED_COLORS.get(value.upper(), GOLD)
    return GOLD


def get_rank_color(rank: str) -> str:
    """Minecraft colour code character for a player name of this rank."""
    if rank in ("YOUTUBE", "ADMIN", "OWNER", "SLOTH"):
        return "c"
    if rank == "PIG+++":
        return "d"
    if rank == "MOD":
        return "2"
    if rank == "HELPER":
        return "9"
    if rank == "BUILD TEAM":
        return "3"
    if rank in ("MVP++", "APPLE", "MOJANG"):
        return "6"
    if rank in ("MVP+", "MVP"):
        return "b"
    if rank in ("VIP+", "VIP"):
        return "a"
    return "7"


def get_formatted_rank(
    rank: str,
    color: Optional[str] = None,
    monthly_color: Optional[str] = None,
) -> str:
    """Rank prefix with ``§`` colour codes and a trailing space.

    Args:
        rank: Display rank from ``get_rank``.
        color: Plus colour code, e.g. ``§c``.
        monthly_color: MVP++ bracket colour code.

    Returns:
        Formatted prefix, or ``§7`` for players without a rank.
    """
    code = color[1:] if color and color.startswith("§") else (color or "7")
    monthly = (
        monthly_color[1:] if monthly_color and monthly_color.startswith("§")
        else (monthly_color or "6")
    )

    if rank == "MVP++":
        formatted = f"§{monthly}[MVP§{code}++§{monthly}]"
    else:
        formatted = {
            "MVP+": f"§b[MVP§{code}+§b]",
            "MVP": "§b[MVP]",
            "VIP+": f"§a[VIP§{code}+§a]",
            "VIP": "§a[VIP]",
            "PIG+++": f"§d[PIG§{code}+++§d]",
        }.get(rank) or STAFF_AND_SPECIAL_RANKS.get(rank)

    if not formatted:
        return "§7"
    return f"{formatted} "


def _plus_color_field(player: dict[str, Any]) -> Optional[str]:
    for key, value in player.items():
        if key.lower() in ("rankpluscolor", "pluscolor") and value:
            return value
    return None


def build_rank_info(data: dict[str, Any]) -> RankInfo:
    """Rank, colours and formatted prefix for a player document."""
    player = data.get("player") or data
    rank = get_rank(data)

    plus_value = None
    monthly = None
    if rank in ("MVP+", "MVP++"):
        plus_value = _plus_color_field(player)
    if rank == "MVP++":
        monthly = get_monthly_rank_color(player.get("monthlyRankColor"))

    plus = get_plus_color(rank, plus_value)
    formatted = get_formatted_rank(rank, plus.mc, monthly.mc if monthly else None)

    return RankInfo(
        rank=rank,
        rank_color_code=get_rank_color(rank),
        plus_color=plus,
        monthly_rank_color=monthly,
        formatted_rank=formatted,
    )


def strip_mc_codes(text: str) -> str:
    """Drop ``§`` colour codes, leaving plain text."""
    return re.sub(r"§.?", "", text)


def mc_to_markup(text: str) -> str:
    """Convert ``§``-coded text to Rich markup.

    Text before the first code is kept unstyled; unknown codes render gray.
    """
    parts = text.split("§")
    out = [escape(parts[0])] if parts[0] else []
    for part in parts[1:]:
        if not part:
            continue
        colour = CODE_HEX.get(part[0].lower(), CODE_HEX["7"])
        body = part[1:]
        if body:
            out.append(f"[{colour}]{escape(body)}[/]")
    return "".join(out)
