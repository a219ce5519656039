# sysprog

A small collection of POSIX system programs and the pieces they are built
from:

- **sysprog-tiny** – an iterative HTTP/1.0 web server that serves static
  files from the current directory and runs programs whose path contains
  `cgi-bin` as CGI programs, passing the text after `?` in `QUERY_STRING`.
- **sysprog-adder** – a minimal CGI program that adds the two numbers in its
  query string (`a&b`).
- **tsh** – a tiny shell with job control: foreground and background jobs,
  the built-ins `jobs`, `bg`, `fg` and `quit`, and forwarding of ctrl-c /
  ctrl-z to the foreground job.

Requires Python 3.10 or later on a POSIX system. There are no third-party
dependencies.

## Installation

```sh
pip install .
```

## Running

Start the web server on a port, from the directory holding the content:

```sh
sysprog-tiny 8000
```

A request for `/` serves `./home.html`. Static files must be regular and
readable (otherwise `403 Forbidden`); missing files give `404 Not found`;
methods other than `GET` give `501 Not Implemented`. A CGI target must be a
regular executable file; its standard output is sent to the client after the
`200 OK` status line and `Server` header.

The adder can be run by hand the same way the server runs it:

```sh
QUERY_STRING='15000&213' sysprog-adder
```

It prints `Connection`, `Content-length` and `Content-type` headers followed
by an HTML page with the sum. To serve it, place an executable under
`./cgi-bin/` that runs `sysprog-adder`.

Start the shell:

```sh
tsh        # interactive, with the "tsh> " prompt
tsh -p     # no prompt, handy for scripted input
tsh -v     # print extra diagnostics
tsh -h     # print usage and exit
```

Programs are started by the path given as the first word; there is no
`PATH` search, so an unknown path prints `<name>: Command not found.`
A trailing `&` runs the job in the background, and text between single
quotes forms one argument.

```
tsh> /bin/sleep 10 &
[1] (12345) /bin/sleep 10 &
tsh> jobs
[1] (12345) Running /bin/sleep 10 &
tsh> fg %1
```

Jobs are named by process id (`fg 12345`) or job id (`fg %1`).

## Using the pieces as a library

```python
from sysprog.cache import WebCache
from sysprog.sbuf import BoundedBuffer
from sysprog.jobs import JobList, JobState, parse_line
from sysprog import tiny

cache = WebCache(10)
cache.put("http://localhost:8000/home.html", b"HTTP/1.0 200 OK\r\n\r\nhello")
"http://localhost:8000/home.html" in cache    # True
cache.get("http://localhost:8000/other")      # None

buf = BoundedBuffer(16)
buf.insert(3)
buf.remove()                                  # 3

parse_line("/bin/sleep 5 &\n")                # (['/bin/sleep', '5'], True)

jobs = JobList()
jobs.add(4242, JobState.BG, "/bin/sleep 5 &\n")
jobs.listing()                                # '[1] (4242) Running /bin/sleep 5 &\n'

tiny.parse_uri("/cgi-bin/adder?1&2")          # (False, './cgi-bin/adder', '1&2')
tiny.get_filetype("./home.html")              # 'text/html'
```

- `sysprog.cache.WebCache` holds up to a fixed number of objects keyed by
  URL. Lookups do not refresh an entry; when every slot is taken the entry
  written longest ago is replaced. Objects of 102400 bytes or more raise
  `ValueError`.
- `sysprog.sbuf.BoundedBuffer` is a thread-safe FIFO whose `insert` blocks
  while it is full and whose `remove` blocks while it is empty.
- `sysprog.rio.RioReader` offers buffered `readline` and `readn` reads (and
  line iteration) over a socket, file object or file descriptor, and
  `sysprog.rio.write_all` writes a whole buffer, retrying short writes.
- `sysprog.net.open_clientfd` and `sysprog.net.open_listenfd` return a
  connected or listening socket for a host and numeric port;
  `sysprog.net.ltoa` renders an integer in any base from 2 to 36.
- `sysprog.tsh.Shell` is the shell itself; `Shell.eval` runs one command
  line and `Shell.run` reads lines from a stream until end of input.

## What is not included

The package has a cache, a bounded connection buffer and socket helpers,
but no proxy server command that ties them together: nothing here accepts
client requests and forwards them to origin servers. Nor does it ship the
small sleep/signal helper programs one would use to exercise the shell's
job control; any program on disk, such as `/bin/sleep`, can be used instead.

## Tests

```sh
pip install '.[test]'
pytest
```