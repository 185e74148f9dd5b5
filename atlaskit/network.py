"""Finding unused local TCP ports."""

from __future__ import annotations

import socket

PORT_RANGE_MIN = 0
PORT_RANGE_MAX = 65535


class PortError(Exception):
    """Raised when no usable port can be found."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"port discovery error: {message}")


def _in_use(port: int) -> bool:
    try:
        conn = socket.create_connection(("127.0.0.1", port), timeout=1)
    except OSError:
        return False
    conn.close()
    return True


def get_open_port_in_range(lower: int, upper: int) -> int:
    """Return the first port in [lower, upper] that nothing accepts connections on."""
    if lower < PORT_RANGE_MIN:
        raise PortError(f"port cannot be less than {PORT_RANGE_MIN}")
    for port in range(lower, min(upper, PORT_RANGE_MAX) + 1):
        if not _in_use(port):
            return port
    if upper > PORT_RANGE_MAX:
        raise PortError(f"port cannot be greater than {PORT_RANGE_MAX}")
    raise PortError(f"no open port found {PORT_RANGE_MIN}")


def get_open_port() -> int:
    """Return the first unused port on the host."""
    return get_open_port_in_range(PORT_RANGE_MIN, PORT_RANGE_MAX)