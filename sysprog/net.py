"""Client and server socket helpers plus integer-to-text conversion."""

from __future__ import annotations

import socket
import string

from sysprog.rio import LISTENQ

_DIGITS = string.digits + string.ascii_lowercase


def ltoa(value: int, base: int = 10) -> str:
    """Render *value* in *base* using lower-case letters for digits above 9."""
    if not 2 <= base <= len(_DIGITS):
        raise ValueError(f"base must be between 2 and {len(_DIGITS)}")
    negative = value < 0
    value = -value if negative else value
    digits = []
    while True:
        value, digit = divmod(value, base)
        digits.append(_DIGITS[digit])
        if value == 0:
            break
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def _resolve(host, port, flags):
    """Look up stream addresses for *host*:*port* with numeric service names."""
    service = str(port)
    flags |= socket.AI_NUMERICSERV
    try:
        return socket.getaddrinfo(
            host, service, type=socket.SOCK_STREAM, flags=flags | socket.AI_ADDRCONFIG
        )
    except socket.gaierror:
        # Hosts with only a loopback interface may reject AI_ADDRCONFIG.
        return socket.getaddrinfo(host, service, type=socket.SOCK_STREAM, flags=flags)


def open_clientfd(hostname, port) -> socket.socket:
    """Connect to *hostname* on numeric *port* and return the connected socket.

    Raises ``socket.gaierror`` when the name cannot be resolved and
    ``ConnectionError`` when no resolved address accepts the connection.
    """
    last_error: OSError | None = None
    for family, socktype, proto, _canon, address in _resolve(hostname, port, 0):
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as exc:
            last_error = exc
            continue
        try:
            sock.connect(address)
        except OSError as exc:
            last_error = exc
            sock.close()
            continue
        return sock
    raise ConnectionError(f"could not connect to {hostname}:{port}") from last_error


def open_listenfd(port) -> socket.socket:
    """Bind a listening socket to numeric *port* on every local address.

    Raises ``socket.gaierror`` when the port cannot be resolved and
    ``OSError`` when no address can be bound or listened on.
    """
    last_error: OSError | None = None
    for family, socktype, proto, _canon, address in _resolve(None, port, socket.AI_PASSIVE):
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as exc:
            last_error = exc
            continue
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind(address)
        except OSError as exc:
            last_error = exc
            sock.close()
            continue
        try:
            sock.listen(LISTENQ)
        except OSError:
            sock.close()
            raise
        return sock
    raise OSError(f"could not bind to port {port}") from last_error