"""Textual UI: lobby roster table with ranks and Zombies stats."""

import argparse
import logging
import threading

from rich.markup import escape
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import DataTable, Footer, Header, RichLog, Static

from zombiesoverlay.events import Join, Leave, LogEvent, Reset, ServerChange
from zombiesoverlay.ranks import CODE_HEX, mc_to_markup
from zombiesoverlay.roster import PlayerRow
from zombiesoverlay.standalone import LOG_FILE, ZombiesOverlay
from zombiesoverlay.stats import NOT_AVAILABLE, best_aa_display, wins_with_pb

logger = logging.getLogger(__name__)

ROSTER_COLUMNS = ("Player", "Wins", "Wins DE", "Wins BB", "Wins PR", "Best AA", "Accuracy")


def player_cell(row: PlayerRow) -> Text:
    """Rank prefix and name, coloured the way the game shows them."""
    if row.rank is None:
        return Text(row.name)
    prefix = mc_to_markup(row.rank.formatted_rank)
    colour = CODE_HEX.get(row.rank.rank_color_code, CODE_HEX["7"])
    return Text.from_markup(f"{prefix}[{colour}]{escape(row.name)}[/]")


def stats_cells(row: PlayerRow) -> tuple[str, ...]:
    if row.stats is None:
        placeholder = "..." if not row.resolved else NOT_AVAILABLE
        return (placeholder,) * (len(ROSTER_COLUMNS) - 1)
    s = row.stats
    return (
        str(s.wins),
        wins_with_pb(s.wins_de, s.pb_de),
        wins_with_pb(s.wins_bb, s.pb_bb),
        wins_with_pb(s.wins_pr, s.pb_pr),
        best_aa_display(s),
        s.accuracy,
    )


class TextualLogHandler(logging.Handler):
    """Logging handler that writes records to the app's event log."""

    def __init__(self, app: "ZombiesApp"):
        super().__init__()
        self.app = app

    def emit(self, record):
        try:
            msg = self.format(record)
            colour = "red" if record.levelno >= logging.ERROR else "yellow"
            self.app.safe_call(self.app.write_log, f"[{colour}]{escape(msg)}[/]")
        except Exception:
            self.handleError(record)


class ZombiesApp(App):
    """Zombies overlay TUI application."""

    CSS = """
    #status-bar {
        height: 1;
        padding: 0 1;
        background: $surface-darken-1;
    }

    .status-line {
        width: 1fr;
        color: $text-muted;
    }

    #roster {
        height: 1fr;
        border: solid $primary;
    }

    #log-view {
        height: 10;
        border: solid $accent;
        background: $surface;
        padding: 0 1;
    }
    """

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("c", "clear_roster", "Clear"),
    ]

    def __init__(self, args: argparse.Namespace):
        super().__init__()
        self.args = args
        self.overlay: ZombiesOverlay | None = None
        self.table: DataTable | None = None
        self.log_widget: RichLog | None = None
        self._log_handler: TextualLogHandler | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="status-bar"):
            yield Static("Log: starting...", id="status-log", classes="status-line")
            yield Static("API: waiting for first lookup", id="status-api", classes="status-line")
        yield DataTable(id="roster", cursor_type="row", zebra_stripes=True)
        yield RichLog(id="log-view", markup=True, wrap=True)
        yield Footer()

    def on_mount(self) -> None:
        """Build the table and start the overlay on a worker thread."""
        from zombiesoverlay import __version__

        self.title = f"Zombies Overlay v{__version__}"
        self.table = self.query_one("#roster", DataTable)
        self.table.add_columns(*ROSTER_COLUMNS)
        self.log_widget = self.query_one("#log-view", RichLog)

        self._log_handler = TextualLogHandler(self)
        self._log_handler.setLevel(logging.WARNING)
        self._log_handler.setFormatter(logging.Formatter('%(name)s: %(message)s'))
        logging.getLogger().addHandler(self._log_handler)

        if not self.args.api_key:
            self.update_status("API", "[yellow]no API key (set HYPIXEL_API_KEY)[/]")

        self.overlay = ZombiesOverlay(
            log_path=self.args.log_path,
            api_key=self.args.api_key,
            backend=self.args.backend,
            interval=self.args.interval,
            lookup_workers=self.args.workers,
            on_event=lambda event: self.safe_call(self.write_event, event),
            on_roster_change=lambda: self.safe_call(self.refresh_roster),
            on_log_status=lambda ok, reason: self.safe_call(
                self.update_status, "LOG", self._status_text(ok, reason)
            ),
            on_api_status=lambda ok, reason: self.safe_call(
                self.update_status, "API", self._status_text(ok, reason)
            ),
        )
        self.write_log(f"[bold]Zombies Overlay v{__version__}[/]")
        self.write_log(f"[dim]Watching {self.overlay.watcher.log_path}[/]")
        self.write_log(f"[dim]Debug log: {LOG_FILE}[/]")

        threading.Thread(target=self.start_overlay, daemon=True, name="overlay-start").start()

    def start_overlay(self) -> None:
        try:
            self.overlay.start()
        except Exception as e:
            logger.error(f"Failed to start overlay: {e}")

    def shutdown_overlay(self) -> None:
        if self._log_handler is not None:
            logging.getLogger().removeHandler(self._log_handler)
            self._log_handler = None
        if self.overlay is not None:
            self.overlay.stop()

    def safe_call(self, method, *args) -> None:
        """Run ``method`` on the app thread, directly if already there."""
        if threading.get_ident() == self._thread_id:
            method(*args)
        else:
            self.call_from_thread(method, *args)

    @staticmethod
    def _status_text(ok: bool, reason: str) -> str:
        colour = "green" if ok else "red"
        state = "connected" if ok else "disconnected"
        return f"[{colour}]{state}[/] [dim]({reason})[/]"

    # --- UI Update Methods (Called via safe_call) ---

    def write_log(self, message: str) -> None:
        if self.log_widget:
            self.log_widget.write(message)

    def write_event(self, event: LogEvent) -> None:
        if isinstance(event, Join):
            self.write_log(f"[green]+ {escape(event.name)}[/]")
        elif isinstance(event, Leave):
            self.write_log(f"[red]- {escape(event.name)}[/]")
        elif isinstance(event, Reset):
            self.write_log("[yellow]Roster cleared[/]")
        elif isinstance(event, ServerChange):
            self.write_log("[cyan]Server changed[/]")

    def update_status(self, key: str, value: str) -> None:
        """Update a status label."""
        key = key.upper()
        if key == "LOG":
            self.query_one("#status-log", Static).update(f"Log: {value}")
        elif key == "API":
            self.query_one("#status-api", Static).update(f"API: {value}")

    def refresh_roster(self) -> None:
        """Redraw the roster table from the current rows."""
        if self.table is None or self.overlay is None:
            return
        rows = self.overlay.roster.sorted_rows()
        self.table.clear()
        for row in rows:
            self.table.add_row(player_cell(row), *stats_cells(row), key=row.name)
        self.sub_title = f"{len(rows)} players"

    # --- Actions ---

    def action_clear_roster(self) -> None:
        """Clear the roster, same as typing -clear in chat."""
        if self.overlay:
            threading.Thread(target=self.overlay.clear_roster, daemon=True).start()


def run_tui(args: argparse.Namespace) -> None:
    """Run the TUI until the user quits.

    The overlay is stopped after the app loop exits, so worker threads
    never wait on a UI loop that is shutting down.
    """
    app = ZombiesApp(args)
    try:
        app.run()
    finally:
        app.shutdown_overlay()
