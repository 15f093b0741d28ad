"""Tests for addresses, storage, cache cells, scope gates and the sweep."""

from __future__ import annotations

import pytest

from cached.constants import DEFAULT_KEY, OUTSIDE_SEQUENCE, UNPOSITIONED
from cached.runtime.cells import enter_scope, get_or_create
from cached.runtime.collector import GCStats, collect_garbage, reset_usage
from cached.runtime.core import (
    Address,
    CachedError,
    CachedTypeError,
    Context,
    DoubleUseError,
    Position,
    ScopeReusedError,
    Storage,
    Traced,
    create_empty_storage,
)


def make_tree():
    root = Storage()
    root.values[Address("p0")] = Traced("kept", used=True)
    root.values[Address("p1")] = Traced("dropped", used=False)
    child = Storage()
    child.values[Address("c0", key=1)] = Traced("child kept", used=True)
    child.values[Address("c1", key=2)] = Traced("child dropped", used=False)
    root.scopes["child"] = Traced(child, used=True)
    stale = Storage()
    stale.values[Address("s0")] = Traced("stale", used=True)
    root.scopes["stale"] = Traced(stale, used=False)
    return root, child


def test_addresses_compare_structurally():
    assert Address("p", 1) == Address("p", 1)
    assert hash(Address("p", 1)) == hash(Address("p", 1))
    assert Address("p", 1) != Address("p", 2)
    assert Address("p") == Address("p", DEFAULT_KEY)
    assert Address(UNPOSITIONED, "k") != Address(OUTSIDE_SEQUENCE, "k")


def test_positions_ignore_line_numbers_for_equality():
    code = test_positions_ignore_line_numbers_for_equality.__code__
    assert Position(code, 10, 3) == Position(code, 10, 99)
    assert Position(code, 10) != Position(code, 12)
    assert "test_storage.py:3@10" == repr(Position(code, 10, 3))


def test_address_repr_hides_default_key():
    assert repr(Address("p")) == "Address('p')"
    assert repr(Address("p", 3)) == "Address('p', key=3)"


def test_errors_share_a_base_and_carry_their_subject():
    address = Address("p")
    double = DoubleUseError(address)
    reused = ScopeReusedError("scope")
    typed = CachedTypeError(address, int, "x")

    for exc in (double, reused, typed):
        assert isinstance(exc, CachedError)
        assert isinstance(exc, RuntimeError)
    assert isinstance(typed, TypeError)
    assert double.address is address
    assert reused.scope_key == "scope"
    assert "cannot be used twice" in str(double)
    assert "expected int" in str(typed)


def test_empty_storage_helpers():
    s = create_empty_storage()
    assert s.is_empty()
    assert len(s) == 0
    s.values[Address("p")] = Traced(1)
    assert not s.is_empty()
    assert len(s) == 1


def test_get_or_create_calls_factory_once_then_reuses():
    s = Storage()
    calls = []

    def factory():
        calls.append(1)
        return object()

    address = Address("p")
    first = get_or_create(s, address, factory)
    assert s.values[address].used

    s.values[address].used = False
    assert get_or_create(s, address, factory) is first
    assert calls == [1]


def test_get_or_create_rejects_second_read_in_a_run():
    s = Storage()
    address = Address("p", "k")
    get_or_create(s, address, object)

    with pytest.raises(DoubleUseError) as info:
        get_or_create(s, address, object)

    assert info.value.address == address


def test_get_or_create_does_not_store_mistyped_values():
    s = Storage()

    with pytest.raises(CachedTypeError):
        get_or_create(s, Address("p"), lambda: "text", expected_type=int)

    assert s.values == {}


def test_get_or_create_logs_creation_and_reuse():
    s = Storage()
    log = []
    get_or_create(s, Address("p"), object, log=log)
    s.values[Address("p")].used = False
    get_or_create(s, Address("p"), object, log=log)
    assert log == ["create:Address('p')", "reuse:Address('p')"]


def test_enter_scope_creates_child_and_resets_position():
    s = Storage()
    ctx = Context(s, position="outer-step")
    seen = []

    def body(inner):
        seen.append((inner.storage, inner.position))
        return "result"

    assert enter_scope(ctx, "child", body) == "result"
    child = s.scopes["child"].value
    assert seen == [(child, OUTSIDE_SEQUENCE)]
    assert ctx.position == "outer-step"


def test_enter_scope_reuses_existing_child_and_rejects_reentry():
    s = Storage()
    ctx = Context(s)
    enter_scope(ctx, "child", lambda inner: None)
    child = s.scopes["child"].value

    with pytest.raises(ScopeReusedError):
        enter_scope(ctx, "child", lambda inner: None)

    s.scopes["child"].used = False
    assert enter_scope(ctx, "child", lambda inner: inner.storage) is child


def test_collect_garbage_evicts_unused_and_resets_survivors():
    root, child = make_tree()

    stats = collect_garbage(root)

    assert list(root.values) == [Address("p0")]
    assert list(root.scopes) == ["child"]
    assert list(child.values) == [Address("c0", key=1)]
    assert not root.values[Address("p0")].used
    assert not root.scopes["child"].used
    assert not child.values[Address("c0", key=1)].used
    assert stats == GCStats(values_kept=2, values_evicted=2, scopes_kept=1, scopes_evicted=1)


def test_collect_garbage_logs_evictions():
    root, _ = make_tree()
    log = []
    collect_garbage(root, log)

    assert "evict:value:Address('p1')" in log
    assert "evict:scope:'stale'" in log
    assert log[-1] == GCStats(2, 2, 1, 1).summary()


def test_second_sweep_without_a_run_empties_storage():
    root, _ = make_tree()
    collect_garbage(root)
    collect_garbage(root)
    assert root.is_empty()


def test_reset_usage_clears_flags_without_evicting():
    root, child = make_tree()
    reset_usage(root)

    assert len(root.values) == 2
    assert len(root.scopes) == 2
    assert not any(slot.used for slot in root.values.values())
    assert not any(slot.used for slot in child.values.values())
    assert not root.scopes["stale"].value.values[Address("s0")].used
