"""Local TCP port helpers."""

import logging
import socket
from typing import Final

from bastionctl.constants import MAX_PORT, MIN_PORT
from bastionctl.exceptions import InvalidPortError

logger: Final = logging.getLogger(__name__)


def validate_port(port: int) -> int:
    """Return ``port`` if it lies in 1..65535.

    Raises:
        InvalidPortError: If the port is out of range.
    """
    if not MIN_PORT <= port <= MAX_PORT:
        raise InvalidPortError(
            f"invalid port number: {port} (must be between {MIN_PORT} and {MAX_PORT})"
        )
    return port


def parse_port(value: str) -> int:
    """Parse and validate a port number typed by the operator.

    Raises:
        InvalidPortError: If the value is not an integer in 1..65535.
    """
    try:
        port = int(value.strip())
    except ValueError as e:
        raise InvalidPortError(f"invalid port number: {value!r}") from e
    return validate_port(port)


def is_port_available(port: int) -> bool:
    """Return True if a TCP listener can currently bind ``port`` on all interfaces."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind(("", port))
        except OSError:
            return False
    return True


def find_available_port(port: int) -> int:
    """Return the first free port at or above ``port``.

    If every port up to 65535 is taken, ``port`` itself is returned and the
    conflict surfaces when the session tries to bind it.
    """
    for candidate in range(port, MAX_PORT + 1):
        if is_port_available(candidate):
            return candidate
    logger.warning(f"No free local port found at or above {port}")
    return port
