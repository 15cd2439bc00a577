"""Tests for the watch queue, the serial rebuild loop and the preview server."""

import queue
import socket
import threading
import urllib.request

import pytest
from watchdog.events import DirModifiedEvent, FileCreatedEvent, FileModifiedEvent, FileOpenedEvent

from staticgen.builder import BuildReport, BuildStage
from staticgen.errors import ServeError
from staticgen.watch import EventForwarder, WatchCoordinator, WatchEvent


class FakeBuilder:
    def __init__(self):
        self.runs = 0
        self.active = 0
        self.max_active = 0
        self.lock = threading.Lock()

    def run(self):
        with self.lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.runs += 1
        with self.lock:
            self.active -= 1
        return BuildReport(stage=BuildStage.DONE)


class FlakyBuilder(FakeBuilder):
    def run(self):
        if self.runs == 0:
            self.runs += 1
            raise RuntimeError("boom")
        return super().run()


def event(name="a.md"):
    return WatchEvent("content", f"/site/content/{name}", "modified")


class TestEventForwarder:
    def test_file_writes_are_queued_with_root(self):
        events = queue.Queue()
        forwarder = EventForwarder("templates", events)
        forwarder.dispatch(FileModifiedEvent("/site/templates/main.html"))
        forwarder.dispatch(FileCreatedEvent("/site/templates/new.html"))
        assert events.get_nowait() == WatchEvent("templates", "/site/templates/main.html", "modified")
        assert events.get_nowait().kind == "created"

    def test_directory_events_are_ignored(self):
        events = queue.Queue()
        EventForwarder("pages", events).dispatch(DirModifiedEvent("/site/pages"))
        assert events.empty()

    def test_non_write_events_are_ignored(self):
        events = queue.Queue()
        EventForwarder("pages", events).dispatch(FileOpenedEvent("/site/pages/index.html"))
        assert events.empty()


class TestRebuildLoop:
    def test_every_event_rebuilds_without_coalescing(self, tmp_path):
        builder = FakeBuilder()
        coordinator = WatchCoordinator(builder, {}, tmp_path, coalesce=False)
        for name in ("a.md", "b.md", "c.md"):
            coordinator.events.put(event(name))
        coordinator.request_stop()
        coordinator.rebuild_loop()
        assert builder.runs == 3
        assert builder.max_active == 1

    def test_queued_events_coalesce_into_one_rebuild(self, tmp_path):
        builder = FakeBuilder()
        coordinator = WatchCoordinator(builder, {}, tmp_path)
        for name in ("a.md", "b.md", "c.md"):
            coordinator.events.put(event(name))
        coordinator.request_stop()
        coordinator.rebuild_loop()
        assert builder.runs == 1
        assert coordinator.builds == 1

    def test_event_after_rebuild_starts_triggers_another(self, tmp_path):
        builder = FakeBuilder()
        coordinator = WatchCoordinator(builder, {}, tmp_path)
        coordinator.process(event("a.md"))
        coordinator.events.put(event("b.md"))
        coordinator.request_stop()
        coordinator.rebuild_loop()
        assert builder.runs == 2

    def test_loop_keeps_running_after_a_crashed_rebuild(self, tmp_path, caplog):
        builder = FlakyBuilder()
        coordinator = WatchCoordinator(builder, {}, tmp_path, coalesce=False)
        coordinator.events.put(event("a.md"))
        coordinator.events.put(event("b.md"))
        coordinator.request_stop()
        thread = threading.Thread(target=coordinator.rebuild_loop, daemon=True)
        thread.start()
        thread.join(timeout=5)
        assert not thread.is_alive()
        assert builder.runs == 2
        assert coordinator.builds == 1
        assert "Rebuild after /site/content/a.md failed" in caplog.text

    def test_drain_leaves_stop_sentinel(self, tmp_path):
        coordinator = WatchCoordinator(FakeBuilder(), {}, tmp_path)
        coordinator.events.put(event())
        coordinator.request_stop()
        assert coordinator.drain_pending() == [event()]
        coordinator.rebuild_loop()
        assert coordinator.builds == 0


def test_preview_server_serves_output(tmp_path):
    (tmp_path / "index.html").write_text("<h1>hi</h1>", encoding="utf-8")
    coordinator = WatchCoordinator(FakeBuilder(), {}, tmp_path, port=0)
    server = coordinator.make_server()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        host, port = server.server_address[:2]
        with urllib.request.urlopen(f"http://{host}:{port}/index.html", timeout=5) as response:
            assert response.read() == b"<h1>hi</h1>"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


def test_start_reports_port_in_use(tmp_path):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
        taken.bind(("127.0.0.1", 0))
        taken.listen()
        port = taken.getsockname()[1]
        coordinator = WatchCoordinator(FakeBuilder(), {}, tmp_path, port=port)
        with pytest.raises(ServeError, match=f"127.0.0.1:{port}"):
            coordinator.start()
        coordinator.stop()
