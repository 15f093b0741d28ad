"""Cache cells and scope gates: the two primitives built on :class:`Storage`."""

from __future__ import annotations

from typing import Any, Callable, Hashable, Optional

from .core import (
    Address,
    CachedTypeError,
    Context,
    DoubleUseError,
    ScopeReusedError,
    Storage,
    Traced,
)


def _check_type(address: Address, slot: Traced, expected_type: Optional[type]) -> None:
    if expected_type is None:
        return
    if slot.expected_type is not None and slot.expected_type != expected_type:
        raise CachedTypeError(address, expected_type, slot.value)
    if not isinstance(slot.value, expected_type):
        raise CachedTypeError(address, expected_type, slot.value)


def get_or_create(
    storage: Storage,
    address: Address,
    factory: Callable[[], Any],
    expected_type: Optional[type] = None,
    log: Optional[list[str]] = None,
) -> Any:
    """Return the value cached at ``address`` or create it with ``factory``.

    Reading a slot that was already read during the current run raises
    :class:`DoubleUseError`. ``factory`` is called at most once, and only when
    the slot is absent.
    """

    slot = storage.values.get(address)
    if slot is not None:
        if slot.used:
            raise DoubleUseError(address)
        _check_type(address, slot, expected_type)
        slot.used = True
        if log is not None:
            log.append(f"reuse:{address!r}")
        return slot.value

    value = factory()
    slot = Traced(value, used=True, expected_type=expected_type)
    _check_type(address, slot, expected_type)
    storage.values[address] = slot
    if log is not None:
        log.append(f"create:{address!r}")
    return value


def enter_scope(ctx: Context, scope_key: Hashable, body: Callable[[Context], Any]) -> Any:
    """Evaluate ``body`` against the child storage named ``scope_key``.

    The child storage is created on first entry. A scope may be entered once
    per run of its parent; a second entry raises :class:`ScopeReusedError`.
    """

    storage = ctx.storage
    entry = storage.scopes.get(scope_key)
    if entry is not None:
        if entry.used:
            raise ScopeReusedError(scope_key)
        entry.used = True
        ctx.emit(f"enter:{scope_key!r}")
        child = entry.value
    else:
        child = Storage()
        storage.scopes[scope_key] = Traced(child, used=True)
        ctx.emit(f"open:{scope_key!r}")
    return body(ctx.child(child))


__all__ = [
    "enter_scope",
    "get_or_create",
]
