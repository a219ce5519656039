"""Web object cache, bounded buffer, socket and buffered I/O helpers, a tiny web server with CGI, and a job-control shell."""

__version__ = "0.1.0"