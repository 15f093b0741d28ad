"""Shared constant values for the Cached runtime."""


class _Sentinel:
    """Named marker compared by identity."""

    __slots__ = ("name",)

    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return self.name


OUTSIDE_SEQUENCE = _Sentinel("OUTSIDE_SEQUENCE")
UNPOSITIONED = _Sentinel("UNPOSITIONED")
DEFAULT_KEY = _Sentinel("DEFAULT_KEY")

SNAPSHOT_VERSION = "0.1"
SNAPSHOT_FILE = "storage.cached.json"
REPL_HISTORY_LIMIT = 10

NODE_COLORS = {
    "scope": "#90CAF9",
    "value": "#C5E1A5",
    "used": "#FFEB3B",
}

TODO_SEED = [
    ("Write documentation", False),
    ("Wrap this list in a scroll view", False),
    ("Get some sleep", True),
    ("Make Cached more ergonomic to use", False),
]

__all__ = [
    "OUTSIDE_SEQUENCE",
    "UNPOSITIONED",
    "DEFAULT_KEY",
    "SNAPSHOT_VERSION",
    "SNAPSHOT_FILE",
    "REPL_HISTORY_LIMIT",
    "NODE_COLORS",
    "TODO_SEED",
]
