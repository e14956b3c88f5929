"""Minecraft client log watcher.

Watches ``latest.log`` for changes, re-reads it on every change notification
and publishes roster events for the lines appended since the previous read.

Change notifications come from a pluggable backend:

- ``native``: watchdog's platform observer (inotify, FSEvents, ReadDirectoryChangesW)
- ``polling``: watchdog's ``PollingObserver``
- ``stat``: a plain thread that compares ``os.stat`` results, which also
  works before the log directory exists
- ``auto``: ``native`` when the log directory exists, ``stat`` otherwise
"""

import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from zombiesoverlay.classifier import classify_line
from zombiesoverlay.delta import LogDelta, LogSnapshot, compute_delta, split_log_lines
from zombiesoverlay.events import LogEvent, Reset, RosterEventBus

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.25  # seconds
BACKENDS = ("auto", "native", "polling", "stat")

StatusCallback = Callable[[bool, str], None]


class FileChangeNotifier(ABC):
    """Calls ``callback`` whenever the watched file may have changed.

    Notifications carry no payload; the receiver re-reads the file.
    """

    def __init__(self, path: Path, callback: Callable[[], None]) -> None:
        self.path = path
        self.callback = callback

    @property
    @abstractmethod
    def running(self) -> bool:
        """Whether notifications are currently being delivered."""

    @abstractmethod
    def start(self) -> None:
        """Begin delivering notifications."""

    @abstractmethod
    def stop(self) -> None:
        """Stop delivering notifications; none fire after this returns."""


class LogFileEventHandler(FileSystemEventHandler):
    """Forwards watchdog events that concern a single file."""

    def __init__(self, path: Path, callback: Callable[[], None]) -> None:
        super().__init__()
        self.path = path
        self.callback = callback

    def _is_target(self, raw_path) -> bool:
        if not raw_path:
            return False
        return Path(os.fsdecode(raw_path)).resolve() == self.path

    def on_modified(self, event: FileModifiedEvent) -> None:
        if not event.is_directory and self._is_target(event.src_path):
            self.callback()

    def on_created(self, event: FileCreatedEvent) -> None:
        if not event.is_directory and self._is_target(event.src_path):
            logger.info("Log file created")
            self.callback()

    def on_deleted(self, event: FileDeletedEvent) -> None:
        if not event.is_directory and self._is_target(event.src_path):
            logger.info("Log file deleted")
            self.callback()

    def on_moved(self, event: FileMovedEvent) -> None:
        if event.is_directory:
            return
        if self._is_target(event.src_path) or self._is_target(event.dest_path):
            logger.info("Log file moved")
            self.callback()


class WatchdogNotifier(FileChangeNotifier):
    """Notifier backed by a watchdog observer on the log's directory."""

    def __init__(
        self,
        path: Path,
        callback: Callable[[], None],
        polling: bool = False,
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        super().__init__(path, callback)
        self.polling = polling
        self.interval = interval
        self._observer: Optional[Observer] = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Schedule the observer.

        Raises:
            OSError: If the log directory cannot be watched.
        """
        if self._observer is not None:
            return

        observer = PollingObserver(timeout=self.interval) if self.polling else Observer()
        handler = LogFileEventHandler(self.path, self.callback)
        # watchdog requires watching directories
        observer.schedule(handler, str(self.path.parent), recursive=False)
        observer.start()
        self._observer = observer

        kind = "polling" if self.polling else "native"
        logger.info(f"Started {kind} watch on {self.path.parent}")

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.unschedule_all()
        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._observer = None


class StatPollingNotifier(FileChangeNotifier):
    """Notifier that compares ``os.stat`` results every ``interval`` seconds.

    A change in existence, size or modification time triggers the callback,
    so a file disappearing is reported as well as a file growing.
    """

    def __init__(
        self,
        path: Path,
        callback: Callable[[], None],
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        super().__init__(path, callback)
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._signature: Optional[tuple[int, int]] = None

    @property
    def running(self) -> bool:
        return self._thread is not None

    def _stat_signature(self) -> Optional[tuple[int, int]]:
        try:
            st = os.stat(self.path)
        except OSError:
            return None
        return (st.st_size, st.st_mtime_ns)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._signature = self._stat_signature()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop, name="log-stat-poller", daemon=True
        )
        self._thread.start()
        logger.info(f"Started stat polling on {self.path} every {self.interval}s")

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=5.0)
        self._thread = None

    def check(self) -> bool:
        """Run one comparison; returns True if the callback fired."""
        signature = self._stat_signature()
        if signature == self._signature:
            return False
        self._signature = signature
        self.callback()
        return True

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.check()
            except Exception as e:
                logger.error(f"Log poll failed: {e}")


def create_notifier(
    backend: str,
    path: Path,
    callback: Callable[[], None],
    interval: float = DEFAULT_INTERVAL,
) -> FileChangeNotifier:
    """Build the change notifier for a backend name.

    Args:
        backend: One of ``BACKENDS``.
        path: Resolved log file path.
        callback: Called on every change notification.
        interval: Poll interval for the polling backends.
    """
    if backend == "auto":
        backend = "native" if path.parent.is_dir() else "stat"
    if backend == "native":
        return WatchdogNotifier(path, callback, polling=False, interval=interval)
    if backend == "polling":
        return WatchdogNotifier(path, callback, polling=True, interval=interval)
    if backend == "stat":
        return StatPollingNotifier(path, callback, interval=interval)
    raise ValueError(f"Unknown watch backend {backend!r}, expected one of {BACKENDS}")


class LogWatcher:
    """Turns changes to a Minecraft log file into roster events.

    Every change notification re-reads the whole file, diffs it against the
    previous snapshot and classifies the appended lines in order. The first
    read only records a baseline; history is never replayed.

    Read failures are reported through ``on_status(False, reason)`` and the
    watch keeps running, so a log that appears later is picked up.

    Example:
        bus = RosterEventBus()
        bus.subscribe(print)
        with LogWatcher("~/.minecraft/logs/latest.log", bus):
            time.sleep(60)
    """

    def __init__(
        self,
        log_path: Optional[str] = None,
        bus: Optional[RosterEventBus] = None,
        interval: float = DEFAULT_INTERVAL,
        backend: str = "auto",
        on_status: Optional[StatusCallback] = None,
    ) -> None:
        """Initialize the watcher.

        Args:
            log_path: Path to latest.log. Defaults to MINECRAFT_LOG_PATH env
                var or the platform's default .minecraft location.
            bus: Event bus to publish to. A new one is created if omitted.
            interval: Poll interval in seconds for polling backends.
            backend: Change notification backend, one of ``BACKENDS``.
            on_status: Called with (connected, reason) when the log becomes
                readable or unreadable.
        """
        if backend not in BACKENDS:
            raise ValueError(f"Unknown watch backend {backend!r}, expected one of {BACKENDS}")

        if log_path is None:
            from zombiesoverlay.settings import default_log_path
            log_path = os.environ.get("MINECRAFT_LOG_PATH") or str(default_log_path())

        self.log_path = Path(log_path).expanduser().resolve()
        self.bus = bus if bus is not None else RosterEventBus()
        self.interval = interval
        self.backend = backend
        self.on_status = on_status

        self._snapshot = LogSnapshot.empty()
        self._connected: Optional[bool] = None
        self._lock = threading.RLock()
        self._notifier: Optional[FileChangeNotifier] = None

        logger.info(f"LogWatcher initialized for: {self.log_path}")

    @property
    def snapshot(self) -> LogSnapshot:
        return self._snapshot

    @property
    def connected(self) -> bool:
        return bool(self._connected)

    @property
    def running(self) -> bool:
        return self._notifier is not None

    def start(self) -> None:
        """Read the baseline and start receiving change notifications."""
        if self._notifier is not None:
            logger.warning("Watcher already started")
            return

        self.poll()

        notifier = create_notifier(self.backend, self.log_path, self.poll, self.interval)
        try:
            notifier.start()
        except OSError as e:
            logger.warning(f"Cannot watch {self.log_path.parent} ({e}), falling back to stat polling")
            notifier = StatPollingNotifier(self.log_path, self.poll, interval=self.interval)
            notifier.start()

        self._notifier = notifier

    def stop(self) -> None:
        """Stop notifications. Events already published stay published."""
        if self._notifier is None:
            logger.debug("Watcher not running")
            return

        self._notifier.stop()
        self._notifier = None
        logger.info("Watcher stopped")

    def poll(self) -> list[LogEvent]:
        """Process one change notification.

        Safe to call manually as a backup when notifications are missed.

        Returns:
            The events published for this read.
        """
        with self._lock:
            try:
                text = self._read_log()
            except FileNotFoundError:
                logger.debug("Log file not found (Minecraft may not be running)")
                self._set_connected(False, "Log file not found")
                return []
            except OSError as e:
                logger.warning(f"Error reading log file: {e}")
                self._set_connected(False, str(e))
                return []

            self._set_connected(True, "Log file readable")

            delta, self._snapshot = compute_delta(self._snapshot, split_log_lines(text))
            events = self._events_for(delta)
            self.bus.publish_all(events)
            return events

    def _read_log(self) -> str:
        with open(self.log_path, "r", encoding="utf-8", errors="replace") as f:
            return f.read()

    def _events_for(self, delta: LogDelta) -> list[LogEvent]:
        if delta.is_reset:
            return [Reset()]

        events: list[LogEvent] = []
        for line in delta.new_lines:
            events.extend(classify_line(line))
        return events

    def _set_connected(self, connected: bool, reason: str) -> None:
        if self._connected == connected:
            return
        self._connected = connected
        logger.info(f"Log {'connected' if connected else 'disconnected'}: {reason}")
        if self.on_status is not None:
            try:
                self.on_status(connected, reason)
            except Exception as e:
                logger.error(f"Status callback error: {e}")

    def __enter__(self) -> "LogWatcher":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
