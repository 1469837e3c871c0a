"""Events, framed packets, TCP/UDP connections and input bindings, with a networked Pong server and client state."""

__version__ = "0.1.0"