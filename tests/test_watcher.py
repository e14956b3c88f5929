"""Tests for the log watcher.

Most tests call ``poll()`` directly so they do not depend on file system
notification timing; the integration tests at the bottom run real
notifiers with a timeout.
"""

import threading
import time
from pathlib import Path

import pytest

from zombiesoverlay import create_roster_pipeline
from zombiesoverlay.classifier import classify_line
from zombiesoverlay.events import Join, Leave, Reset, RosterEventBus, ServerChange
from zombiesoverlay.watcher import (
    FileChangeNotifier,
    LogWatcher,
    StatPollingNotifier,
    WatchdogNotifier,
    create_notifier,
)


def chat(message: str) -> str:
    return f"[12:00:00] [Client thread/INFO]: [CHAT] {message}\n"


def append(path: Path, text: str) -> None:
    with open(path, "a", encoding="utf-8") as f:
        f.write(text)
        f.flush()


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "latest.log"
    path.write_text("[12:00:00] [Client thread/INFO]: Setting user: Steve\n", encoding="utf-8")
    return path


@pytest.fixture
def received():
    return []


@pytest.fixture
def watcher(log_file, received):
    bus = RosterEventBus(on_event=received.append)
    return LogWatcher(log_path=str(log_file), bus=bus, backend="stat")


class TestPoll:
    """Manual polling through the delta and classifier."""

    def test_first_read_emits_nothing(self, tmp_path, received):
        """History is never replayed, whatever it contains."""
        path = tmp_path / "latest.log"
        path.write_text(chat("Steve joined (1/20)!") + chat("ONLINE: Alice, Bob"), encoding="utf-8")
        watcher = LogWatcher(log_path=str(path), bus=RosterEventBus(on_event=received.append))

        assert watcher.poll() == []
        assert received == []
        assert len(watcher.snapshot) == 2

    def test_appended_lines_classified(self, watcher, log_file, received):
        watcher.poll()
        append(log_file, chat("Steve joined (1/20)!") + chat("Alex joined (2/20)!"))

        events = watcher.poll()

        assert events == [Join("Steve"), Join("Alex")]
        assert received == events

    def test_non_chat_lines_ignored(self, watcher, log_file):
        watcher.poll()
        append(log_file, "[12:00:01] [Client thread/INFO]: Connecting to mc.hypixel.net\n")
        assert watcher.poll() == []

    def test_roster_dump_order(self, watcher, log_file):
        watcher.poll()
        append(log_file, chat("ONLINE: Alice, Bob, Charlie [2]"))
        assert watcher.poll() == [
            Reset(), ServerChange(), Join("Alice"), Join("Bob"), Join("Charlie"),
        ]

    def test_rotation_emits_single_reset(self, tmp_path, received):
        """A short replacement file resets instead of replaying its lines."""
        path = tmp_path / "latest.log"
        path.write_text("".join(chat(f"Player{i} joined (1/4)!") for i in range(20)), encoding="utf-8")
        watcher = LogWatcher(log_path=str(path), bus=RosterEventBus(on_event=received.append))
        watcher.poll()

        path.write_text("".join(chat(f"New{i} joined (1/4)!") for i in range(5)), encoding="utf-8")

        assert watcher.poll() == [Reset()]
        assert received == [Reset()]

    def test_cleared_file_resets(self, watcher, log_file):
        watcher.poll()
        log_file.write_text("", encoding="utf-8")

        assert watcher.poll() == [Reset()]
        assert watcher.snapshot.is_empty

        # The next content is a fresh baseline
        log_file.write_text(chat("Steve joined (1/20)!"), encoding="utf-8")
        assert watcher.poll() == []

    def test_subscriber_error_does_not_stop_delivery(self, log_file):
        bus = RosterEventBus()
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(seen.append)
        watcher = LogWatcher(log_path=str(log_file), bus=bus)
        watcher.poll()
        append(log_file, chat("Steve left."))

        assert watcher.poll() == [Leave("Steve")]
        assert seen == [Leave("Steve")]


APPENDED = [
    chat("Steve joined (1/20)!"),
    chat("[42] joined (3/20)!"),
    "[12:00:05] [Client thread/INFO]: Just a server message\n",
    chat("Alex has joined"),
    chat("Steve left."),
]


class TestAppendOnlyDeterminism:
    """Events for appended lines depend only on those lines."""

    @pytest.mark.parametrize("baseline", [
        ["[12:00:00] [Client thread/INFO]: Setting user: Steve\n"],
        [chat("Alice joined (1/20)!"), chat("Bob joined (2/20)!")],
        [chat("ONLINE: Alice, Bob, Charlie [2]")],
        [chat("Sending you to mini12A!"), chat("ONLINE: Zed"), chat("Zed left.")],
        [f"[12:00:00] [Client thread/INFO]: line {i}\n" for i in range(30)],
    ], ids=["plain", "joins", "online", "transfer", "long"])
    def test_same_events_for_any_baseline(self, tmp_path, baseline):
        path = tmp_path / "latest.log"
        path.write_text("".join(baseline), encoding="utf-8")
        watcher = LogWatcher(log_path=str(path), bus=RosterEventBus())
        watcher.poll()

        append(path, "".join(APPENDED))

        assert watcher.poll() == [Join("Steve"), Join("Alex"), Leave("Steve")]

    def test_matches_classifying_each_line_alone(self, watcher, log_file):
        watcher.poll()
        append(log_file, "".join(APPENDED))

        expected = [event for line in APPENDED for event in classify_line(line.strip())]
        assert watcher.poll() == expected


class TestConnectionStatus:
    """Read failures surface as status changes, not exceptions."""

    def test_missing_file_reports_disconnected(self, tmp_path):
        statuses = []
        watcher = LogWatcher(
            log_path=str(tmp_path / "missing.log"),
            on_status=lambda ok, reason: statuses.append((ok, reason)),
        )

        assert watcher.poll() == []
        assert watcher.poll() == []

        assert statuses == [(False, "Log file not found")]
        assert not watcher.connected

    def test_recovers_when_file_appears(self, tmp_path):
        statuses = []
        path = tmp_path / "latest.log"
        watcher = LogWatcher(
            log_path=str(path),
            on_status=lambda ok, reason: statuses.append(ok),
        )
        watcher.poll()

        path.write_text(chat("Steve joined (1/20)!"), encoding="utf-8")

        # Appearing file is a baseline, not a replay
        assert watcher.poll() == []
        assert statuses == [False, True]
        assert watcher.connected

    def test_unreadable_path_keeps_snapshot(self, log_file, received):
        """A read error other than a missing file publishes nothing."""
        statuses = []
        watcher = LogWatcher(
            log_path=str(log_file),
            bus=RosterEventBus(on_event=received.append),
            on_status=lambda ok, reason: statuses.append((ok, reason)),
        )
        watcher.poll()
        baseline = watcher.snapshot

        log_file.unlink()
        log_file.mkdir()

        assert watcher.poll() == []
        assert received == []
        assert watcher.snapshot == baseline
        assert not watcher.connected
        assert statuses[0][0] is True
        ok, reason = statuses[-1]
        assert ok is False
        assert reason != "Log file not found"

    def test_status_callback_error_is_contained(self, tmp_path):
        def broken(ok, reason):
            raise RuntimeError("boom")

        watcher = LogWatcher(log_path=str(tmp_path / "missing.log"), on_status=broken)
        assert watcher.poll() == []


class TestConfiguration:

    def test_invalid_backend(self, log_file):
        with pytest.raises(ValueError):
            LogWatcher(log_path=str(log_file), backend="inotify")

    def test_env_log_path(self, log_file, monkeypatch):
        monkeypatch.setenv("MINECRAFT_LOG_PATH", str(log_file))
        watcher = LogWatcher()
        assert watcher.log_path == log_file.resolve()

    def test_auto_uses_native_for_existing_directory(self, log_file):
        notifier = create_notifier("auto", log_file, lambda: None)
        assert isinstance(notifier, WatchdogNotifier)
        assert not notifier.polling

    def test_auto_uses_stat_for_missing_directory(self, tmp_path):
        notifier = create_notifier("auto", tmp_path / "nope" / "latest.log", lambda: None)
        assert isinstance(notifier, StatPollingNotifier)

    def test_polling_backend(self, log_file):
        notifier = create_notifier("polling", log_file, lambda: None)
        assert isinstance(notifier, WatchdogNotifier)
        assert notifier.polling

    def test_unknown_backend(self, log_file):
        with pytest.raises(ValueError):
            create_notifier("magic", log_file, lambda: None)

    def test_notifier_must_implement_interface(self, log_file):
        class Incomplete(FileChangeNotifier):
            def start(self):
                pass

        with pytest.raises(TypeError):
            Incomplete(log_file, lambda: None)

    def test_create_roster_pipeline(self, log_file):
        """Factory returns a watcher publishing to the returned bus."""
        watcher, bus = create_roster_pipeline(log_path=str(log_file), backend="stat")
        assert isinstance(watcher, LogWatcher)
        assert isinstance(bus, RosterEventBus)
        assert watcher.bus is bus
        assert watcher.backend == "stat"


class TestStatPollingNotifier:

    def test_check_detects_growth_and_deletion(self, log_file):
        calls = []
        notifier = StatPollingNotifier(log_file, lambda: calls.append(1))
        notifier._signature = notifier._stat_signature()

        assert notifier.check() is False
        append(log_file, "more\n")
        assert notifier.check() is True
        log_file.unlink()
        assert notifier.check() is True
        assert notifier.check() is False
        assert len(calls) == 2


class TestLifecycle:

    def test_start_stop(self, watcher):
        watcher.start()
        try:
            assert watcher.running
            assert watcher.connected
        finally:
            watcher.stop()
        assert not watcher.running

    def test_no_notifications_after_stop(self, watcher, log_file, received):
        watcher.interval = 0.05
        watcher.start()
        baseline = watcher.snapshot
        watcher.stop()

        append(log_file, chat("Steve joined (1/20)!"))
        time.sleep(0.3)

        assert received == []
        assert watcher.snapshot == baseline

    def test_stop_when_not_running(self, watcher):
        watcher.stop()
        assert not watcher.running

    def test_context_manager(self, watcher):
        with watcher:
            assert watcher.running
        assert not watcher.running


class TestWatcherIntegration:
    """Real notifiers with file writes."""

    @pytest.mark.parametrize("backend", ["stat", "polling"])
    def test_end_to_end_join(self, log_file, backend):
        """A line appended while watching reaches the bus."""
        joined = threading.Event()
        names = []

        def on_join(event):
            names.append(event.name)
            joined.set()

        watcher, bus = create_roster_pipeline(
            log_path=str(log_file), backend=backend, interval=0.05
        )
        bus.register_handler(Join, on_join)

        with watcher:
            time.sleep(0.1)
            append(log_file, chat("Steve joined (1/20)!"))

            assert joined.wait(timeout=5.0), "Join was not received within timeout"

        assert names == ["Steve"]
