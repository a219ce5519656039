"""Iterative HTTP/1.0 web server for static files and CGI programs."""

from __future__ import annotations

import os
import socket
import stat
import subprocess
import sys

from sysprog.net import open_listenfd
from sysprog.rio import RioReader, write_all


def parse_uri(uri: str) -> tuple[bool, str, str]:
    """Return ``(is_static, filename, cgiargs)`` for a request target."""
    if "cgi-bin" not in uri:
        filename = "." + uri
        if uri.endswith("/"):
            filename += "home.html"
        return True, filename, ""
    path, _sep, cgiargs = uri.partition("?")
    return False, "." + path, cgiargs


def get_filetype(filename: str) -> str:
    """Derive a content type from the file name."""
    if ".html" in filename:
        return "text/html"
    if ".gif" in filename:
        return "image/gif"
    if ".png" in filename:
        return "image/png"
    if ".jpg" in filename:
        return "image/jpeg"
    return "text/plain"


def error_response(cause, errnum, shortmsg, longmsg) -> bytes:
    """Build the complete HTTP error response sent to a client."""
    text = (
        f"HTTP/1.0 {errnum} {shortmsg}\r\n"
        "Content-type: text/html\r\n\r\n"
        "<html><title>Tiny Error</title>"
        "<body bgcolor=ffffff>\r\n"
        f"{errnum}: {shortmsg}\r\n"
        f"<p>{longmsg}: {cause}\r\n"
        "<hr><em>The Tiny Web server</em>\r\n"
    )
    return text.encode("latin-1", errors="replace")


def serve_static(conn, filename, filesize) -> None:
    """Send response headers and the file's contents to the client."""
    header = (
        "HTTP/1.0 200 OK\r\n"
        "Server: Tiny Web Server\r\n"
        f"Content-length: {filesize}\r\n"
        f"Content-type: {get_filetype(filename)}\r\n\r\n"
    )
    write_all(conn, header.encode("latin-1"))
    with open(filename, "rb") as src:
        body = src.read(filesize)
    write_all(conn, body)


def _descriptor(conn):
    if isinstance(conn, int):
        return conn
    try:
        return conn.fileno()
    except (AttributeError, OSError):
        return None


def serve_dynamic(conn, filename, cgiargs) -> None:
    """Run a CGI program with its output going to the client."""
    write_all(conn, b"HTTP/1.0 200 OK\r\nServer: Tiny Web Server\r\n")
    env = dict(os.environ, QUERY_STRING=cgiargs)
    fd = _descriptor(conn)
    try:
        if fd is None:
            result = subprocess.run([filename], env=env, stdout=subprocess.PIPE, check=False)
            write_all(conn, result.stdout)
        else:
            subprocess.run([filename], env=env, stdout=fd, check=False)
    except OSError as exc:
        print(f"Execve error: {exc}", file=sys.stderr)


def _read_requesthdrs(reader: RioReader) -> None:
    for line in reader:
        print(line.decode("latin-1"), end="")
        if line == b"\r\n":
            break


def handle_request(conn) -> None:
    """Handle one HTTP request/response transaction."""
    reader = RioReader(conn)
    line = reader.readline()
    if not line:
        return
    text = line.decode("latin-1")
    print(text, end="")
    parts = text.split()
    method = parts[0] if parts else ""
    uri = parts[1] if len(parts) > 1 else ""
    if method.lower() != "get":
        write_all(
            conn,
            error_response(method, "501", "Not Implemented", "Tiny does not implement this method"),
        )
        return
    _read_requesthdrs(reader)

    is_static, filename, cgiargs = parse_uri(uri)
    try:
        info = os.stat(filename)
    except OSError:
        write_all(
            conn, error_response(filename, "404", "Not found", "Tiny couldn't find this file")
        )
        return

    regular = stat.S_ISREG(info.st_mode)
    if is_static:
        if not regular or not info.st_mode & stat.S_IRUSR:
            write_all(
                conn, error_response(filename, "403", "Forbidden", "Tiny couldn't read the file")
            )
            return
        serve_static(conn, filename, info.st_size)
    else:
        if not regular or not info.st_mode & stat.S_IXUSR:
            write_all(
                conn,
                error_response(filename, "403", "Forbidden", "Tiny couldn't run the CGI program"),
            )
            return
        serve_dynamic(conn, filename, cgiargs)


def _describe(address) -> tuple[str, str]:
    try:
        return socket.getnameinfo(address, 0)
    except (OSError, TypeError):
        return str(address[0]), str(address[1])


def main(argv=None) -> int:
    """Serve requests one at a time on the port given on the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("usage: tiny <port>", file=sys.stderr)
        return 1
    try:
        listener = open_listenfd(args[0])
    except OSError as exc:
        print(f"Open_listenfd error: {exc}", file=sys.stderr)
        return 1
    with listener:
        while True:
            try:
                conn, address = listener.accept()
            except OSError:
                break
            host, port = _describe(address)
            print(f"Accepted connection from ({host}, {port})")
            with conn:
                try:
                    handle_request(conn)
                except OSError as exc:
                    print(f"request failed: {exc}", file=sys.stderr)
    return 0