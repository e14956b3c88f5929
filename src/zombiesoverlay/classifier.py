"""Chat line classification for Minecraft client logs.

Each log line is looked at in isolation. Lines outside the ``[CHAT]``
envelope are inert; chat messages are matched against ``CHAT_RULES`` in
order and the first rule whose pattern matches decides the events, even when
it decides on none.

    [12:00:00] [Client thread/INFO]: [CHAT] ONLINE: Alice, Bob [2]
    -> Reset, ServerChange, Join("Alice"), Join("Bob")
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from zombiesoverlay.events import Join, Leave, LogEvent, Reset, ServerChange

logger = logging.getLogger(__name__)

CHAT_ENVELOPE = re.compile(r"\[.*\] \[Client thread/INFO\]: \[CHAT\](?: |$)", re.DOTALL)
CHAT_MARKER = "[CHAT]"

BRACKETED_NUMBER = re.compile(r"^\[\d+\]$")
DUPLICATE_SUFFIX = re.compile(r"\s*\[\d+\]$")

CLEAR_COMMANDS = ("-clear", "-c")


@dataclass(frozen=True)
class ChatRule:
    """One entry of the classification table.

    ``handler`` receives the chat message and the pattern match and returns
    the events for the line.
    """
    name: str
    pattern: re.Pattern
    handler: Callable[[str, re.Match], list[LogEvent]]


def is_bracketed_number(token: str) -> bool:
    """True for duplicate-counter artifacts such as ``[42]``."""
    return bool(BRACKETED_NUMBER.match(token))


def extract_chat_message(line: str) -> Optional[str]:
    """Return the trimmed chat message, or None if the line isn't chat."""
    if not CHAT_ENVELOPE.search(line):
        return None
    _, _, message = line.partition(CHAT_MARKER)
    return message.strip()


def _first_token(message: str) -> str:
    return message.split(" ", 1)[0]


def _server_reset() -> list[LogEvent]:
    return [Reset(), ServerChange()]


def _on_blank(message: str, match: re.Match) -> list[LogEvent]:
    return [Reset()]


def _on_server_reset(message: str, match: re.Match) -> list[LogEvent]:
    return _server_reset()


def _on_online_list(message: str, match: re.Match) -> list[LogEvent]:
    events = _server_reset()
    roster = message[match.end():].strip()
    roster = DUPLICATE_SUFFIX.sub("", roster)
    for entry in roster.split(","):
        name = entry.strip()
        if name:
            events.append(Join(name))
    return events


def _on_join_counter(message: str, match: re.Match) -> list[LogEvent]:
    name = _first_token(message)
    if is_bracketed_number(name):
        return []
    return [Join(name)]


def _on_has_joined(message: str, match: re.Match) -> list[LogEvent]:
    name = match.group(1).strip()
    if not name or is_bracketed_number(name):
        return []
    return [Join(name)]


def _on_search_command(message: str, match: re.Match) -> list[LogEvent]:
    name = match.group(1).strip()
    if not name or is_bracketed_number(name):
        return []
    return [Join(name)]


def _on_ignored(message: str, match: re.Match) -> list[LogEvent]:
    return []


def _on_unknown_player_quoted(message: str, match: re.Match) -> list[LogEvent]:
    name = match.group(1).strip()
    if name.endswith("!"):
        name = name[:-1]
    if is_bracketed_number(name):
        return []
    if name in CLEAR_COMMANDS:
        return _server_reset()
    # A failed "-s <name>" lookup still names someone in the lobby
    return [Join(name)]


def _on_unknown_player_dash(message: str, match: re.Match) -> list[LogEvent]:
    # Text after "name of " minus one leading and two trailing characters
    rest = message.split("name of ", 1)[1]
    name = rest[1:-2].strip()
    if not name:
        return []
    return [Leave(name)]


def _on_departure(message: str, match: re.Match) -> list[LogEvent]:
    return [Leave(_first_token(message))]


CHAT_RULES: tuple[ChatRule, ...] = (
    ChatRule("blank", re.compile(r"^-?$"), _on_blank),
    ChatRule("server_transfer", re.compile(r"Sending you to (.*)!"), _on_server_reset),
    ChatRule("clear_command", re.compile(r"(.*): -clear|^-(?:clear|c)$"), _on_server_reset),
    ChatRule("online_list", re.compile(r"ONLINE:"), _on_online_list),
    ChatRule("join_counter", re.compile(r"(.*) joined \((\d+)/(\d+)\)!"), _on_join_counter),
    ChatRule("has_joined", re.compile(r"(.+) has joined"), _on_has_joined),
    ChatRule("search_command", re.compile(r": -s (.*)$"), _on_search_command),
    ChatRule("unknown_player_c", re.compile(r"Can't find a player by the name of 'c'"), _on_ignored),
    ChatRule("unknown_player_quoted", re.compile(r"Can't find a player by the name of '(.+?)'"), _on_unknown_player_quoted),
    ChatRule("unknown_player_dash", re.compile(r"Can't find a player by the name of (.*?)-"), _on_unknown_player_dash),
    ChatRule(
        "departure",
        re.compile(
            r"(.*) has quit!|(.*) left\.|(.*) was slain by .*"
            r"|(.*) fell out of the world.*|(.*) disconnected\."
        ),
        _on_departure,
    ),
)

_RULES_BY_NAME = {rule.name: rule for rule in CHAT_RULES}


def classify_message(message: str) -> list[LogEvent]:
    """Classify an already-extracted chat message."""
    for rule in CHAT_RULES:
        match = rule.pattern.search(message)
        if match:
            events = rule.handler(message, match)
            if events:
                logger.debug(f"Rule {rule.name} matched {message!r}: {events}")
            return events
    return []


def match_rule(name: str, message: str) -> Optional[list[LogEvent]]:
    """Apply a single named rule to a chat message.

    Returns None when the rule's pattern does not match, otherwise the
    events it produces (possibly empty).
    """
    rule = _RULES_BY_NAME[name]
    match = rule.pattern.search(message)
    if not match:
        return None
    return rule.handler(message, match)


def classify_line(line: str) -> list[LogEvent]:
    """Map one raw log line to zero or more roster events.

    Args:
        line: A single log line, non-empty after trimming.

    Returns:
        Events in emission order. Lines that are not chat lines, or chat
        lines no rule recognises, produce an empty list.
    """
    message = extract_chat_message(line)
    if message is None:
        return []
    return classify_message(message)
