"""Computation builder: sequencing combinators and generator bodies.

A :class:`Computation` is pure data. Nothing happens until it is evaluated
against a :class:`~cached.runtime.core.Context`, usually by
:func:`~cached.runtime.driver.run_with_storage`.

Bodies are most conveniently written as generator functions. Each
``yield <computation>`` is one sequencing step; the position of the ``yield``
is installed in the context before the yielded computation runs, so cache
cells read by that computation are addressed by the step that consumed them::

    @computation("random")
    def numbers():
        first = yield cached_here(random.random)
        second = yield cached_here(random.random)
        return first, second

The explicit combinators (:func:`bind`, :func:`for_each`, :func:`using`, ...)
express the same model without generators.
"""

from __future__ import annotations

import contextlib
import inspect
import sys
from functools import partial
from typing import Any, Callable, Hashable, Iterable, Optional

from ..constants import DEFAULT_KEY, UNPOSITIONED
from .cells import enter_scope, get_or_create
from .core import Address, Context, Position


class Computation:
    """A procedure that, given a context, produces a result."""

    __slots__ = ("_fn", "label")

    def __init__(self, fn: Callable[[Context], Any], label: str = "computation"):
        self._fn = fn
        self.label = label

    def evaluate(self, ctx: Context) -> Any:
        return self._fn(ctx)

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"<Computation {self.label}>"


class ReturnFrom(Computation):
    """Splices another computation into the caller's context."""

    __slots__ = ("inner",)

    def __init__(self, inner: Computation):
        self.inner = _expect_computation(inner)
        super().__init__(self.inner.evaluate, f"return_from {self.inner.label}")


def _expect_computation(value) -> Computation:
    if not isinstance(value, Computation):
        raise TypeError(
            f"Expected a Computation, got {type(value).__name__}: {value!r}"
        )
    return value


def _innermost_frame(gen):
    # Steps yielded through ``yield from`` belong to the delegate's frame.
    while inspect.isgenerator(gen.gi_yieldfrom):
        gen = gen.gi_yieldfrom
    return gen.gi_frame


def _drive(gen, ctx: Context) -> Any:
    """Run a generator body, one sequencing step per ``yield``.

    A yielded :class:`ReturnFrom` is evaluated at the current position while
    the generator is still suspended, so its ``with`` blocks are still open.
    """

    try:
        step = gen.send(None)
        while True:
            if isinstance(step, ReturnFrom):
                position = ctx.position
            else:
                position = Position.from_frame(_innermost_frame(gen))
            ctx.position = position
            try:
                value = _expect_computation(step).evaluate(ctx)
                ctx.position = position
            except Exception as exc:
                step = gen.throw(exc)
            else:
                step = gen.send(value)
    except StopIteration as stop:
        result = stop.value
    finally:
        gen.close()

    if isinstance(result, ReturnFrom):
        raise TypeError(
            "A generator body must yield return_from(...): "
            "use `return (yield return_from(c))`"
        )
    return result


def _evaluate_body(body, ctx: Context) -> Any:
    if isinstance(body, Computation):
        return body.evaluate(ctx)
    result = body()
    if inspect.isgenerator(result):
        return _drive(result, ctx)
    if isinstance(result, Computation):
        return result.evaluate(ctx)
    return result


def bind(
    computation: Computation,
    continuation: Callable[[Any], Computation],
    position: Optional[Hashable] = None,
) -> Computation:
    """Sequence ``computation`` and feed its result to ``continuation``.

    The position defaults to the call site of ``bind``; it is installed before
    ``computation`` runs and stays installed for the continuation.
    """

    _expect_computation(computation)
    if position is None:
        position = Position.from_frame(sys._getframe(1))

    def step(ctx):
        ctx.position = position
        value = computation.evaluate(ctx)
        ctx.position = position
        return _expect_computation(continuation(value)).evaluate(ctx)

    return Computation(step, f"bind@{position!r}")


def ret(value) -> Computation:
    return Computation(lambda ctx: value, "return")


def return_from(computation: Computation) -> ReturnFrom:
    """Evaluate ``computation`` in the caller's context, without a new step.

    Inside a generator body use ``return (yield return_from(c))``.
    """

    return ReturnFrom(computation)


def delay(body) -> Computation:
    """Defer ``body()`` until evaluation.

    ``body`` may return a computation, a generator (driven as a body without
    entering a new scope) or a plain value.
    """

    label = getattr(body, "__name__", "body")
    return Computation(partial(_evaluate_body, body), f"delay {label}")


def zero() -> Computation:
    return Computation(lambda ctx: None, "zero")


def combine(first: Computation, rest: Callable[[], Computation]) -> Computation:
    _expect_computation(first)

    def step(ctx):
        first.evaluate(ctx)
        return _expect_computation(rest()).evaluate(ctx)

    return Computation(step, "combine")


def for_each(items: Iterable, body: Callable[[Any], Computation]) -> Computation:
    """Evaluate ``body(item)`` for every item.

    Iterations share the current position, so unkeyed cells inside ``body``
    collide on the second iteration. Key them by item or index.
    """

    def loop(ctx):
        for item in items:
            _evaluate_body(partial(body, item), ctx)

    return Computation(loop, "for_each")


def _is_resource(resource) -> bool:
    return not inspect.isclass(resource) and (
        (hasattr(resource, "__enter__") and hasattr(resource, "__exit__"))
        or hasattr(resource, "close")
    )


def _managed(resource):
    if hasattr(resource, "__enter__") and hasattr(resource, "__exit__"):
        return resource
    if hasattr(resource, "close"):
        return contextlib.closing(resource)
    raise TypeError(
        f"{type(resource).__name__} is neither a context manager nor closable"
    )


def using(resource, body: Callable[[Any], Computation]) -> Computation:
    """Evaluate ``body(resource)`` fully, then release ``resource``.

    The resource is released once on every exit path, through ``__exit__`` or
    ``close()``. ``resource`` may also be a zero-argument factory (a class, for
    instance); it is then called on every evaluation, which lets the computation
    run more than once. A ready-made resource is released after the first run.
    """

    def scoped(ctx):
        current = resource if _is_resource(resource) else resource()
        with _managed(current) as value:
            return _evaluate_body(partial(body, value), ctx)

    label = getattr(resource, "__name__", type(resource).__name__)
    return Computation(scoped, f"using {label}")


def computation(scope_key: Hashable, body=None):
    """Build a computation that runs ``body`` inside the scope ``scope_key``.

    Usable directly, ``computation("todo", body)``, or as a decorator on a
    zero-argument generator function. Each scope may be entered once per run of
    its parent.
    """

    if body is None:
        return partial(computation, scope_key)

    def run(ctx):
        return enter_scope(ctx, scope_key, partial(_evaluate_body, body))

    return Computation(run, f"computation {scope_key!r}")


def cached_here(factory: Callable[[], Any], key: Hashable = DEFAULT_KEY, expected_type=None) -> Computation:
    """Either retrieve the value cached at the current step or create it.

    The address is the position of the step that evaluates this computation,
    not the place where it was written, so one descriptor can be consumed by
    several steps and every step gets its own slot.
    """

    def read(ctx):
        address = Address(ctx.position, key)
        return get_or_create(ctx.storage, address, factory, expected_type, ctx.log)

    return Computation(read, "cached_here")


def cached_here_under(key: Hashable, factory: Callable[[], Any], expected_type=None) -> Computation:
    return cached_here(factory, key, expected_type)


def dangerous_cached_under(key: Hashable, factory: Callable[[], Any], expected_type=None) -> Computation:
    """Either retrieve the value cached under ``key`` or create it.

    The current position is ignored, so the same ``key`` used from two steps
    refers to one slot. Avoiding such collisions is up to the caller.
    """

    def read(ctx):
        address = Address(UNPOSITIONED, key)
        return get_or_create(ctx.storage, address, factory, expected_type, ctx.log)

    return Computation(read, f"dangerous_cached_under {key!r}")


__all__ = [
    "Computation",
    "ReturnFrom",
    "bind",
    "cached_here",
    "cached_here_under",
    "combine",
    "computation",
    "dangerous_cached_under",
    "delay",
    "for_each",
    "ret",
    "return_from",
    "using",
    "zero",
]
