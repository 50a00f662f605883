"""Single-hop HTTP/HTTPS forwarding relay."""

__version__ = "1.0.0"
