"""Snapshot diffing for an append-mostly log file.

The watcher keeps the full list of non-blank lines from its last read.
``compute_delta`` compares that snapshot with a fresh read and decides
whether the file grew, was rotated, or shrank, without touching any state
itself.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)

# A read counts as a rotation when it drops below half the previous line
# count and is also short in absolute terms.
ROTATION_RATIO = 0.5
ROTATION_MAX_LINES = 10


@dataclass(frozen=True)
class LogSnapshot:
    """Non-blank, trimmed lines of the last successful read, in file order."""
    lines: tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "LogSnapshot":
        return cls(())

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def __len__(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class LogDelta:
    """What changed between two snapshots.

    Attributes:
        new_lines: Lines appended since the previous snapshot.
        is_reset: The file was cleared or rotated; new_lines is empty.
        baseline: The previous snapshot was empty and this read only
            established the starting point.
    """
    new_lines: tuple[str, ...] = ()
    is_reset: bool = False
    baseline: bool = False


def split_log_lines(text: str) -> list[str]:
    """Split file content into trimmed lines, dropping blank ones."""
    return [line.strip() for line in text.split("\n") if line.strip()]


def is_rotation(previous_count: int, current_count: int) -> bool:
    """Heuristic for a log that was replaced by a short new file."""
    return (
        current_count < previous_count * ROTATION_RATIO
        and current_count < ROTATION_MAX_LINES
    )


def compute_delta(
    previous: LogSnapshot,
    current_lines: Sequence[str]
) -> tuple[LogDelta, LogSnapshot]:
    """Diff a fresh read against the previous snapshot.

    Args:
        previous: Snapshot from the last successful read (empty before the
            first read, or after the file was cleared).
        current_lines: Output of ``split_log_lines`` for the new read.

    Returns:
        Tuple of (delta, snapshot to keep). The snapshot always reflects
        the new read in full, except after a clear where it is empty.
    """
    current = tuple(current_lines)
    previous_count = len(previous.lines)
    current_count = len(current)

    if current_count == 0 and previous_count > 0:
        logger.info("Log file is empty, resetting")
        return LogDelta(is_reset=True), LogSnapshot.empty()

    if previous_count == 0:
        logger.debug(f"Baseline established with {current_count} lines")
        return LogDelta(baseline=True), LogSnapshot(current)

    if is_rotation(previous_count, current_count):
        logger.info(
            f"Log rotation detected ({previous_count} -> {current_count} lines)"
        )
        return LogDelta(is_reset=True), LogSnapshot(current)

    if current_count >= previous_count:
        new_lines = current[previous_count:]
        if new_lines:
            logger.debug(f"Found {len(new_lines)} new lines")
        return LogDelta(new_lines=new_lines), LogSnapshot(current)

    # Shrank, but not enough to look like a rotation
    logger.debug(
        f"Log shrank from {previous_count} to {current_count} lines, no new lines"
    )
    return LogDelta(), LogSnapshot(current)
