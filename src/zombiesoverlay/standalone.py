"""Standalone Zombies overlay.

Wires the log watcher, roster and player lookups together and runs them
either behind the Textual UI or headless with plain console output.

Usage:
    zombiesoverlay
    zombiesoverlay --headless --log-path ~/.minecraft/logs/latest.log
    python -m zombiesoverlay --test-key --api-key <key>
"""

import argparse
import logging
import signal
import sys
import time
import traceback
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from zombiesoverlay.events import Join, Leave, LogEvent, Reset, RosterEventBus, ServerChange
from zombiesoverlay.fetcher import LookupResult, PlayerLookup
from zombiesoverlay.hypixel import HypixelClient
from zombiesoverlay.mojang import MojangClient
from zombiesoverlay.ranks import strip_mc_codes
from zombiesoverlay.roster import PlayerRow, Roster
from zombiesoverlay.settings import SETTINGS_DIR, get_settings
from zombiesoverlay.stats import NOT_AVAILABLE, best_aa_display, wins_with_pb
from zombiesoverlay.watcher import BACKENDS, LogWatcher

LOG_DIR = SETTINGS_DIR
LOG_FILE = LOG_DIR / "debug.log"

logger = logging.getLogger(__name__)


def configure_logging(log_file: Path = LOG_FILE, console: bool = True) -> None:
    """Send DEBUG to the log file and INFO to the console.

    Replaces any handlers already on the root logger.
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    # Configure root logger directly (basicConfig is a no-op if already configured)
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for h in root_logger.handlers[:]:
        root_logger.removeHandler(h)
    root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter('%(message)s'))
        root_logger.addHandler(console_handler)

    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def describe_event(event: LogEvent) -> str:
    """One-line console description of a roster event."""
    if isinstance(event, Join):
        return f"+ {event.name}"
    if isinstance(event, Leave):
        return f"- {event.name}"
    if isinstance(event, Reset):
        return "* roster cleared"
    if isinstance(event, ServerChange):
        return "* server changed"
    return repr(event)


def format_row(row: PlayerRow) -> str:
    """Plain-text summary of a resolved roster row."""
    rank = strip_mc_codes(row.rank.formatted_rank) if row.rank else ""
    if row.stats is None:
        return f"{rank}{row.name}: {row.error or NOT_AVAILABLE}"

    s = row.stats
    return (
        f"{rank}{row.name}: {s.wins} wins"
        f" | DE {wins_with_pb(s.wins_de, s.pb_de)}"
        f" | BB {wins_with_pb(s.wins_bb, s.pb_bb)}"
        f" | PR {wins_with_pb(s.wins_pr, s.pb_pr)}"
        f" | AA {best_aa_display(s)}"
        f" | acc {s.accuracy}"
    )


class ZombiesOverlay:
    """Log watcher, roster and player lookups wired into one session.

    Callbacks run on the watcher or lookup threads, never on the caller's.
    """

    def __init__(
        self,
        log_path: Optional[str] = None,
        api_key: Optional[str] = None,
        backend: str = "auto",
        interval: float = 0.25,
        lookup_workers: int = 4,
        on_event: Optional[Callable[[LogEvent], None]] = None,
        on_roster_change: Optional[Callable[[], None]] = None,
        on_player_resolved: Optional[Callable[[PlayerRow], None]] = None,
        on_log_status: Optional[Callable[[bool, str], None]] = None,
        on_api_status: Optional[Callable[[bool, str], None]] = None,
    ) -> None:
        self.on_player_resolved = on_player_resolved

        self.mojang = MojangClient()
        self.hypixel = HypixelClient(api_key)
        self.lookup = PlayerLookup(
            self.mojang,
            self.hypixel,
            on_result=self._on_lookup_result,
            on_api_status=on_api_status,
            max_workers=lookup_workers,
        )
        self.roster = Roster(
            on_player_added=self.lookup.request,
            on_reset=self.lookup.invalidate,
            on_change=on_roster_change,
            is_current=self.lookup.is_current,
        )

        self.bus = RosterEventBus()
        self.bus.subscribe(self.roster.handle)
        if on_event is not None:
            self.bus.subscribe(on_event)

        self.watcher = LogWatcher(
            log_path=log_path,
            bus=self.bus,
            interval=interval,
            backend=backend,
            on_status=on_log_status,
        )
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def _on_lookup_result(self, result: LookupResult) -> None:
        if not self.roster.apply_lookup(result):
            logger.debug(f"Dropping lookup for {result.name}: player left or roster was cleared")
            return
        row = self.roster.get(result.name)
        if row is not None and self.on_player_resolved:
            self.on_player_resolved(row)

    def clear_roster(self) -> None:
        """Manual reset, same as typing -clear in chat."""
        self.bus.publish(Reset())

    def start(self) -> None:
        if self._running:
            return
        logger.info("Starting Zombies overlay...")
        self._running = True
        self.watcher.start()
        logger.info(f"Watching {self.watcher.log_path}")

    def stop(self) -> None:
        if not self._running:
            return
        logger.info("Stopping Zombies overlay...")
        self._running = False
        self.watcher.stop()
        self.lookup.close()
        logger.info("Zombies overlay stopped")

    def run_forever(self) -> None:
        """Run until interrupted."""
        self.start()

        def signal_handler(sig, frame):
            print("\n\nShutting down...")
            self.stop()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        while self._running:
            time.sleep(1)


def run_headless(args: argparse.Namespace) -> None:
    """Print roster events and resolved players to the console."""
    overlay = ZombiesOverlay(
        log_path=args.log_path,
        api_key=args.api_key,
        backend=args.backend,
        interval=args.interval,
        lookup_workers=args.workers,
        on_event=lambda event: print(describe_event(event)),
        on_player_resolved=lambda row: print(format_row(row)),
        on_log_status=lambda ok, reason: print(f"[log] {'connected' if ok else 'disconnected'}: {reason}"),
        on_api_status=lambda ok, reason: print(f"[api] {'connected' if ok else 'disconnected'}: {reason}"),
    )

    print("\n" + "=" * 50)
    print("Zombies Overlay Running (headless)")
    print("=" * 50)
    print(f"Log: {overlay.watcher.log_path}")
    print(f"Backend: {args.backend}")
    print(f"Debug log: {LOG_FILE}")
    print("=" * 50)
    print("\nWaiting for chat... (Ctrl+C to quit)\n")

    try:
        overlay.run_forever()
    except KeyboardInterrupt:
        overlay.stop()


def check_api_key(api_key: Optional[str]) -> int:
    """Check an API key and print the outcome; returns an exit code."""
    result = HypixelClient(api_key).check_key()
    if result.success:
        print("API key is valid")
        return 0
    print(f"API key check failed: {result.cause}")
    return 1


def show_log() -> None:
    print(f"Debug log: {LOG_FILE}")
    if LOG_FILE.exists():
        print(f"Size: {LOG_FILE.stat().st_size:,} bytes")
        print("\nLast 20 lines:")
        with open(LOG_FILE, encoding='utf-8', errors='replace') as f:
            lines = f.readlines()
            for line in lines[-20:]:
                print(line, end='')


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="zombiesoverlay",
        description="Hypixel Zombies overlay - lobby roster with player stats",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  zombiesoverlay
  zombiesoverlay --headless
  zombiesoverlay --api-key <key> --save
  zombiesoverlay --backend stat --interval 0.5

Environment variables:
  HYPIXEL_API_KEY      Hypixel API key (overrides saved setting)
  MINECRAFT_LOG_PATH   Path to latest.log (overrides saved setting)

Debug logs are written to ~/.zombiesoverlay/debug.log
        """
    )

    parser.add_argument(
        "--log-path", "-l",
        default=str(settings.log_path),
        help="Path to Minecraft latest.log (default: saved setting or platform default)"
    )

    parser.add_argument(
        "--api-key", "-k",
        default=settings.api_key,
        help="Hypixel API key (default: saved setting or HYPIXEL_API_KEY)"
    )

    parser.add_argument(
        "--backend", "-b",
        choices=BACKENDS,
        default=settings.get("watch_backend"),
        help="File change backend (default: %(default)s)"
    )

    parser.add_argument(
        "--interval",
        type=float,
        default=settings.get("poll_interval"),
        help="Poll interval in seconds for polling backends (default: %(default)s)"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=settings.get("lookup_workers"),
        help="Concurrent player lookups (default: %(default)s)"
    )

    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Print roster events to the console instead of running the UI"
    )

    parser.add_argument(
        "--test-key",
        action="store_true",
        help="Validate the Hypixel API key and exit"
    )

    parser.add_argument(
        "--save",
        action="store_true",
        help="Save --log-path, --api-key, --backend, --interval and --workers as defaults"
    )

    parser.add_argument(
        "--show-log",
        action="store_true",
        help="Show the debug log file path and exit"
    )

    return parser


def save_args(args: argparse.Namespace) -> None:
    settings = get_settings()
    settings.set("log_path", args.log_path, save=False)
    settings.set("api_key", args.api_key or "", save=False)
    settings.set("watch_backend", args.backend, save=False)
    settings.set("poll_interval", args.interval, save=False)
    settings.set("lookup_workers", args.workers, save=False)
    settings.save()
    print(f"Settings saved to {settings.settings_file}")


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the Zombies overlay."""
    args = build_parser().parse_args(argv)

    if args.show_log:
        show_log()
        return

    # The TUI owns the terminal, so only headless mode logs to the console
    configure_logging(console=args.headless)

    logger.info("=" * 60)
    logger.info("ZOMBIES OVERLAY STARTING")
    logger.info(f"Time: {datetime.now().isoformat()}")
    logger.info(f"Python: {sys.version}")
    logger.info(f"Args: log_path={args.log_path}, backend={args.backend}, "
                f"interval={args.interval}, headless={args.headless}")
    logger.info("=" * 60)

    if args.save:
        save_args(args)

    if args.test_key:
        sys.exit(check_api_key(args.api_key))

    if not args.api_key:
        print("Warning: no Hypixel API key configured, stats will be unavailable.")
        print("Set HYPIXEL_API_KEY or run with --api-key <key> --save")

    try:
        if args.headless:
            run_headless(args)
        else:
            from zombiesoverlay.tui import run_tui
            run_tui(args)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        logger.debug(traceback.format_exc())
        print(f"\nFatal error: {e}")
        print(f"See debug log for details: {LOG_FILE}")
        sys.exit(1)


if __name__ == "__main__":
    main()
