"""Robust buffered reading and complete writing over sockets, files and descriptors."""

from __future__ import annotations

import os
from typing import Iterator, Protocol, Union

RIO_BUFSIZE = 8192
MAXLINE = 8192
MAXBUF = 8192
LISTENQ = 1024


class _Readable(Protocol):
    def read(self, size: int = ...) -> bytes: ...


Source = Union[int, _Readable, object]


def _make_reader(source):
    """Return a callable that reads up to *size* bytes from *source*."""
    if isinstance(source, int):
        return lambda size: os.read(source, size)
    recv = getattr(source, "recv", None)
    if callable(recv):
        return recv
    read1 = getattr(source, "read1", None)
    if callable(read1):
        return read1
    read = getattr(source, "read", None)
    if callable(read):
        return read
    raise TypeError(f"cannot read from {type(source).__name__}")


class RioReader:
    """Buffered reader that hands out lines or exact byte counts."""

    def __init__(self, source):
        self._read = _make_reader(source)
        self._buf = b""
        self._pos = 0

    def _fill(self) -> bool:
        """Make sure unread bytes are buffered; False at end of input."""
        if self._pos < len(self._buf):
            return True
        data = self._read(RIO_BUFSIZE)
        if not data:
            self._buf = b""
            self._pos = 0
            return False
        self._buf = bytes(data)
        self._pos = 0
        return True

    def _take(self, limit: int, stop_at_newline: bool) -> bytes:
        parts = []
        remaining = limit
        while remaining > 0 and self._fill():
            chunk = self._buf[self._pos:self._pos + remaining]
            newline = chunk.find(b"\n") if stop_at_newline else -1
            if newline >= 0:
                chunk = chunk[:newline + 1]
            self._pos += len(chunk)
            remaining -= len(chunk)
            parts.append(chunk)
            if newline >= 0:
                break
        return b"".join(parts)

    def readline(self, maxlen=MAXLINE) -> bytes:
        """Read one line of at most ``maxlen - 1`` bytes, newline included.

        Returns ``b""`` at end of input when nothing was read.
        """
        return self._take(maxlen - 1, stop_at_newline=True)

    def readn(self, n) -> bytes:
        """Read up to *n* bytes, returning fewer only at end of input."""
        if n < 0:
            raise ValueError("byte count must not be negative")
        return self._take(n, stop_at_newline=False)

    def __iter__(self) -> Iterator[bytes]:
        while line := self.readline():
            yield line


def write_all(dest, data) -> int:
    """Write every byte of *data* to *dest* and return the count written."""
    view = memoryview(bytes(data))
    total = len(view)
    if isinstance(dest, int):
        write = lambda chunk: os.write(dest, chunk)  # noqa: E731
    else:
        sendall = getattr(dest, "sendall", None)
        if callable(sendall):
            sendall(view)
            return total
        write = getattr(dest, "write", None)
        if not callable(write):
            raise TypeError(f"cannot write to {type(dest).__name__}")
    while view:
        written = write(view)
        if not written:
            raise OSError("write made no progress")
        view = view[written:]
    return total