"""A WSGI application serving liveness and readiness endpoints."""

from __future__ import annotations

import threading
from http import HTTPStatus
from typing import Any, Callable, Iterable, Mapping

_BODIES = {
    HTTPStatus.NOT_FOUND: b"404 page not found\n",
    HTTPStatus.METHOD_NOT_ALLOWED: b"Method Not Allowed\n",
}


def _normalize(path: str) -> str:
    if not path:
        raise ValueError("endpoint path must not be empty")
    return path if path.startswith("/") else "/" + path


class ChecksHandler:
    """Runs registered liveness and readiness checks for GET requests on two paths.

    A check returns on success and raises on failure. Any failure answers 503;
    with fail_fast the remaining checks are skipped after the first failure.
    """

    def __init__(self, health_path: str, ready_path: str, *, fail_fast: bool = False) -> None:
        self.liveness_path = _normalize(health_path)
        self.readiness_path = _normalize(ready_path)
        if self.liveness_path == self.readiness_path:
            raise ValueError(f"multiple registrations for {self.liveness_path}")
        self.fail_fast = fail_fast
        self._liveness: dict[str, Callable[..., Any] | None] = {}
        self._readiness: dict[str, Callable[..., Any] | None] = {}
        self._lock = threading.Lock()

    def add_liveness(self, name: str, check: Callable[..., Any] | None) -> None:
        """Register or replace a liveness check."""
        with self._lock:
            self._liveness[name] = check

    def add_readiness(self, name: str, check: Callable[..., Any] | None) -> None:
        """Register or replace a readiness check."""
        with self._lock:
            self._readiness[name] = check

    def _run(self, check: Callable[..., Any], environ: Mapping[str, Any] | None) -> None:
        check()

    def status_for(
        self, method: str, path: str, environ: Mapping[str, Any] | None = None
    ) -> HTTPStatus:
        """Run the checks behind path and return the response status."""
        if path == self.readiness_path:
            checks = self._readiness
        elif path == self.liveness_path:
            checks = self._liveness
        else:
            return HTTPStatus.NOT_FOUND
        if method != "GET":
            return HTTPStatus.METHOD_NOT_ALLOWED
        with self._lock:
            snapshot = list(checks.values())
        status = HTTPStatus.OK
        for check in snapshot:
            if check is None:
                continue
            try:
                self._run(check, environ)
            except Exception:
                status = HTTPStatus.SERVICE_UNAVAILABLE
                if self.fail_fast:
                    return status
        return status

    def __call__(self, environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        status = self.status_for(
            environ.get("REQUEST_METHOD", "GET"), environ.get("PATH_INFO", "/"), environ
        )
        body = _BODIES.get(status, b"")
        headers = [("Content-Length", str(len(body)))]
        if body:
            headers.append(("Content-Type", "text/plain; charset=utf-8"))
        start_response(f"{status.value} {status.phrase}", headers)
        return [body]


class ChecksContextHandler(ChecksHandler):
    """Like ChecksHandler, but each check is called with the request's WSGI environ."""

    def _run(self, check: Callable[..., Any], environ: Mapping[str, Any] | None) -> None:
        check(environ)