"""Entry point that runs a computation against a storage."""

from __future__ import annotations

from typing import Any, Optional

from ..constants import OUTSIDE_SEQUENCE
from .builder import Computation, _expect_computation
from .core import Context, Storage
from .collector import collect_garbage, reset_usage


def run_with_storage(
    storage: Storage, computation: Computation, log: Optional[list[str]] = None
) -> Any:
    """Run ``computation`` against ``storage`` and sweep what it did not use.

    If evaluation raises, every usage flag in ``storage`` is cleared and the
    exception propagates. Nothing is evicted by a failed run, so the same
    storage can be run again.
    """

    _expect_computation(computation)
    ctx = Context(storage, OUTSIDE_SEQUENCE, log)
    try:
        result = computation.evaluate(ctx)
    except BaseException:
        reset_usage(storage)
        if log is not None:
            log.append("run:failed")
        raise
    collect_garbage(storage, log)
    return result


__all__ = [
    "run_with_storage",
]
