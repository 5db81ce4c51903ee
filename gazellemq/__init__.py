"""Client for a GazelleMQ message hub: publisher, subscriber and command connections, the wire protocol and benchmark commands."""

__version__ = "0.1.0"