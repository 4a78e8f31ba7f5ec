"""An in-memory stand-in for the GitHub self-hosted runners API."""

from __future__ import annotations

import json
import logging
import re
import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import urlsplit

_log = logging.getLogger(__name__)

_LIST_ROUTES = (
    re.compile(r"/repos/[^/]+/[^/]+/actions/runners"),
    re.compile(r"/orgs/[^/]+/actions/runners"),
)
_REMOVE_ROUTES = (
    re.compile(r"/repos/[^/]+/[^/]+/actions/runners/(?P<id>[^/]+)"),
    re.compile(r"/orgs/[^/]+/actions/runners/(?P<id>[^/]+)"),
)


@dataclass
class GitHubRunner:
    """A self-hosted runner as reported by the API."""

    name: str
    id: int | None = None
    os: str | None = None
    status: str | None = None
    busy: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the API representation, leaving out unset fields."""
        pairs = (
            ("id", self.id),
            ("name", self.name),
            ("os", self.os),
            ("status", self.status),
            ("busy", self.busy),
        )
        return {key: value for key, value in pairs if value is not None}


class RunnersList:
    """A mutable list of runners, unique by name."""

    def __init__(self) -> None:
        self._runners: list[GitHubRunner] = []
        self._lock = threading.Lock()

    @property
    def runners(self) -> list[GitHubRunner]:
        with self._lock:
            return list(self._runners)

    def add(self, runner: GitHubRunner) -> None:
        """Add ``runner`` unless one with the same name is present."""
        with self._lock:
            self._add(runner)

    def _add(self, runner: GitHubRunner) -> None:
        if not any(existing.name == runner.name for existing in self._runners):
            self._runners.append(runner)

    def remove(self, runner_id: int | str) -> None:
        """Remove every runner whose id matches ``runner_id``."""
        wanted = str(runner_id)
        with self._lock:
            self._runners = [
                runner for runner in self._runners if runner.id is None or str(runner.id) != wanted
            ]

    def list_payload(self) -> dict[str, Any]:
        """Return the body of a runner listing response."""
        with self._lock:
            return {
                "total_count": len(self._runners),
                "runners": [runner.to_dict() for runner in self._runners],
            }

    def get_server(self) -> _RunnersServer:
        """Start an HTTP server on localhost that serves this list.

        The returned server exposes ``url`` and ``close()`` and works as
        a context manager.
        """
        server = _RunnersServer(self)
        server.start()
        return server

    def sync(self, runner_names: list[str]) -> None:
        """Replace the list with online runners of the given names."""
        with self._lock:
            self._runners = []
            for index, name in enumerate(runner_names):
                self._add(GitHubRunner(name=name, id=index, os="linux", status="online", busy=False))

    def add_offline(self, runner_names: list[str]) -> None:
        """Add offline runners of the given names."""
        with self._lock:
            for index, name in enumerate(runner_names):
                self._add(
                    GitHubRunner(name=name, id=1000 + index, os="linux", status="offline", busy=False)
                )


class _Handler(BaseHTTPRequestHandler):
    server: _RunnersServer

    def _handle(self) -> None:
        path = urlsplit(self.path).path
        runners = self.server.runners

        if any(route.fullmatch(path) for route in _LIST_ROUTES):
            body = json.dumps(runners.list_payload()).encode("utf-8")
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
            return

        for route in _REMOVE_ROUTES:
            match = route.fullmatch(path)
            if match:
                runners.remove(match.group("id"))
                self.send_response(200)
                self.send_header("Content-Length", "0")
                self.end_headers()
                return

        body = b"404 page not found\n"
        self.send_response(404)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    do_GET = do_POST = do_PUT = do_PATCH = do_DELETE = _handle

    def log_message(self, format: str, *args: Any) -> None:
        """Send access log lines to the module logger instead of stderr."""
        _log.debug("%s - " + format, self.address_string(), *args)


class _RunnersServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, runners: RunnersList) -> None:
        super().__init__(("127.0.0.1", 0), _Handler)
        self.runners = runners
        self._thread = threading.Thread(target=self.serve_forever, daemon=True)

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"

    def start(self) -> None:
        self._thread.start()

    def close(self) -> None:
        self.shutdown()
        self.server_close()
        self._thread.join()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()