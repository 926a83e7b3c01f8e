"""An in-process Redis-protocol server for tests, a protocol reader and a sorted set."""

__version__ = "0.1.0"
__all__ = ["proto", "server", "sorted_set"]