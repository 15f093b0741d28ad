"""Post-run sweep over a storage tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core import Storage


@dataclass
class GCStats:
    values_kept: int = 0
    values_evicted: int = 0
    scopes_kept: int = 0
    scopes_evicted: int = 0

    def summary(self) -> str:
        return (
            f"gc:values kept={self.values_kept} evicted={self.values_evicted} "
            f"scopes kept={self.scopes_kept} evicted={self.scopes_evicted}"
        )


def collect_garbage(storage: Storage, log: Optional[list[str]] = None) -> GCStats:
    """Remove values and scopes not used by the last run, reset flags on the rest."""

    stats = GCStats()

    def sweep(node: Storage):
        for address, slot in list(node.values.items()):
            if slot.used:
                slot.used = False
                stats.values_kept += 1
            else:
                del node.values[address]
                stats.values_evicted += 1
                if log is not None:
                    log.append(f"evict:value:{address!r}")

        for key, entry in list(node.scopes.items()):
            if entry.used:
                entry.used = False
                stats.scopes_kept += 1
                sweep(entry.value)
            else:
                del node.scopes[key]
                stats.scopes_evicted += 1
                if log is not None:
                    log.append(f"evict:scope:{key!r}")

    sweep(storage)
    if log is not None:
        log.append(stats.summary())
    return stats


def reset_usage(storage: Storage) -> None:
    """Clear every ``used`` flag without evicting anything."""

    for slot in storage.values.values():
        slot.used = False
    for entry in storage.scopes.values():
        entry.used = False
        reset_usage(entry.value)


__all__ = [
    "GCStats",
    "collect_garbage",
    "reset_usage",
]
