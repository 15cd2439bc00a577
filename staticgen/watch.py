from __future__ import annotations

import functools
import http.server
import logging
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .builder import BuildReport, SiteBuilder
from .errors import ServeError

logger = logging.getLogger(__name__)

WRITE_EVENTS = {"created", "modified", "moved", "deleted"}


@dataclass(frozen=True)
class WatchEvent:
    root: str
    path: str
    kind: str


class EventForwarder(FileSystemEventHandler):
    def __init__(self, root: str, events: queue.Queue) -> None:
        super().__init__()
        self.root = root
        self.events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in WRITE_EVENTS:
            return
        self.events.put(WatchEvent(self.root, str(event.src_path), event.event_type))


class PreviewRequestHandler(http.server.SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args: object) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class WatchCoordinator:
    def __init__(
        self,
        builder: SiteBuilder,
        roots: Mapping[str, Path],
        output_dir: Path,
        host: str = "127.0.0.1",
        port: int = 8000,
        coalesce: bool = True,
    ) -> None:
        self.builder = builder
        self.roots = dict(roots)
        self.output_dir = output_dir
        self.host = host
        self.port = port
        self.coalesce = coalesce
        self.events: queue.Queue = queue.Queue()
        self.builds = 0
        self._stop = object()
        self._observer: Optional[Observer] = None
        self._server: Optional[http.server.ThreadingHTTPServer] = None
        self._threads: list[threading.Thread] = []

    def drain_pending(self) -> list[WatchEvent]:
        drained = []
        while True:
            try:
                item = self.events.get_nowait()
            except queue.Empty:
                return drained
            if item is self._stop:
                # keep the sentinel for the loop
                self.events.put(item)
                return drained
            drained.append(item)

    def process(self, event: WatchEvent) -> BuildReport:
        extra = self.drain_pending() if self.coalesce else []
        logger.info("Change detected in %s: %s (%d more queued)", event.root, event.path, len(extra))
        report = self.builder.run()
        self.builds += 1
        if report.ok:
            logger.info("Rebuilt site in %.2fs", report.elapsed)
        return report

    def request_stop(self) -> None:
        self.events.put(self._stop)

    def rebuild_loop(self) -> None:
        while True:
            item = self.events.get()
            if item is self._stop:
                return
            try:
                self.process(item)
            except Exception:
                logger.exception("Rebuild after %s failed", item.path)

    def make_server(self) -> http.server.ThreadingHTTPServer:
        handler = functools.partial(PreviewRequestHandler, directory=str(self.output_dir))
        return http.server.ThreadingHTTPServer((self.host, self.port), handler)

    @property
    def server_address(self) -> tuple[str, int]:
        if self._server is None:
            return self.host, self.port
        host, port = self._server.server_address[:2]
        return str(host), int(port)

    def _spawn(self, target, name: str) -> None:
        thread = threading.Thread(target=target, name=name, daemon=True)
        thread.start()
        self._threads.append(thread)

    def start(self) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        try:
            self._server = self.make_server()
        except OSError as exc:
            raise ServeError(f"cannot serve on {self.host}:{self.port}: {exc.strerror or exc}") from exc

        self._observer = Observer()
        for name, root in self.roots.items():
            if not root.is_dir():
                logger.warning("Not watching %s: %s does not exist", name, root)
                continue
            self._observer.schedule(EventForwarder(name, self.events), str(root), recursive=True)
            logger.info("Watching %s", root)
        self._observer.start()
        self._spawn(self._server.serve_forever, "staticgen-http")
        self._spawn(self.rebuild_loop, "staticgen-rebuild")
        host, port = self.server_address
        logger.info("Serving %s at http://%s:%d/", self.output_dir, host, port)

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        self.request_stop()
        for thread in self._threads:
            thread.join(timeout=5)
        self._threads = []

    def serve_forever(self) -> None:
        report = self.builder.run()
        if not report.ok:
            logger.warning("Initial build failed; waiting for changes")
        self.start()
        try:
            threading.Event().wait()
        except KeyboardInterrupt:
            logger.info("Stopping")
        finally:
            self.stop()
