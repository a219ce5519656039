"""CGI program that adds the two numbers in QUERY_STRING."""

from __future__ import annotations

import os
import re
import sys

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def parse_query(query) -> tuple[int, int]:
    """Return the two integers of an ``a&b`` query; ``(0, 0)`` when there is none."""
    if query is None:
        return 0, 0
    first, sep, second = query.partition("&")
    if not sep:
        raise ValueError("query must hold two arguments separated by '&'")
    return _atoi(first), _atoi(second)


def render(query) -> str:
    """Return the CGI headers and HTML body for *query*."""
    n1, n2 = parse_query(query)
    content = (
        "Welcome to add.com: THE Internet addition portal.\r\n<p>"
        f"The answer is: {n1} + {n2} = {n1 + n2}\r\n<p>"
        "Thanks for visiting!\r\n"
    )
    return (
        "Connection: close\r\n"
        f"Content-length: {len(content.encode())}\r\n"
        "Content-type: text/html\r\n\r\n" + content
    )


def main(argv=None) -> int:
    """Write the response for the QUERY_STRING environment variable; *argv* is unused."""
    try:
        output = render(os.environ.get("QUERY_STRING"))
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1
    sys.stdout.write(output)
    sys.stdout.flush()
    return 0