"""Counters written with the explicit combinators instead of generator bodies."""

from __future__ import annotations

from ..runtime.builder import (
    bind,
    cached_here,
    cached_here_under,
    computation,
    delay,
    for_each,
    ret,
    return_from,
    zero,
)


class Tally:
    def __init__(self):
        self.value = 0

    def __repr__(self):  # pragma: no cover - representation helper
        return f"Tally({self.value})"


def _increment(tally):
    tally.value += 1
    return ret(tally)


# Entering this computation twice in one scope is a ScopeReusedError; wrap it
# in differently named scopes to use it more than once.
counter = computation("counter", bind(cached_here(Tally), _increment))

two_counters = computation(
    "two-counters",
    bind(
        computation(1, return_from(counter)),
        lambda first: bind(
            computation(2, return_from(counter)),
            lambda second: ret((first.value, second.value)),
        ),
    ),
)


def keyed_counters(names):
    """One tally per name; names that disappear lose their tally."""

    names = list(names)

    def body():
        tallies = {}

        def count(name):
            def store(tally):
                tally.value += 1
                tallies[name] = tally.value
                return zero()

            return bind(cached_here_under(name, Tally), store)

        return bind(for_each(names, count), lambda _: ret(tallies))

    return computation("keyed-counters", delay(body))


__all__ = [
    "Tally",
    "counter",
    "keyed_counters",
    "two_counters",
]
