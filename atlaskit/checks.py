"""Ready-made health checks: DNS resolution and HTTP GET probes."""

from __future__ import annotations

import concurrent.futures
import socket
import urllib.error
import urllib.request
from typing import Any, Callable

Check = Callable[[], None]
"""A check returns on success and raises on failure."""

CheckContext = Callable[[Any], None]
"""A check that receives the request it runs for."""


class CheckError(Exception):
    """Raised by a check that failed."""


def dns_probe_check(host: str, timeout: float) -> Check:
    """A check that fails unless host resolves to at least one address within timeout seconds."""

    def lookup() -> list[Any]:
        return socket.getaddrinfo(host, None)

    def check() -> None:
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(lookup)
            try:
                addrs = future.result(timeout=timeout)
            except concurrent.futures.TimeoutError as exc:
                raise CheckError(f"lookup {host}: timed out") from exc
            except OSError as exc:
                raise CheckError(f"lookup {host}: {exc}") from exc
        finally:
            executor.shutdown(wait=False)
        if not addrs:
            raise CheckError("could not resolve host")

    return check


class _NoRedirect(urllib.request.HTTPRedirectHandler):
    def redirect_request(self, req, fp, code, msg, headers, newurl):
        return None


def http_get_check(url: str, timeout: float) -> Check:
    """A check that GETs url without following redirects and fails unless it answers 200."""
    opener = urllib.request.build_opener(_NoRedirect)

    def check() -> None:
        try:
            with opener.open(url, timeout=timeout) as response:
                code, reason = response.status, response.reason
        except urllib.error.HTTPError as exc:
            code, reason = exc.code, exc.reason
            exc.close()
        except (urllib.error.URLError, OSError) as exc:
            raise CheckError(str(exc)) from exc
        if code != 200:
            raise CheckError(f"{code}: {code} {reason}")

    return check