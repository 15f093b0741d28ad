"""Tests for storage inspection and snapshot documents."""

from __future__ import annotations

import json

import pytest

from cached import (
    build_snapshot_document,
    cached_here,
    cached_here_under,
    canonicalize_snapshot,
    computation,
    create_empty_storage,
    diff_snapshots,
    hash_snapshot_document,
    iter_storages,
    load_snapshot_document,
    print_storage,
    run_with_storage,
    storage_summary,
    storage_to_dict,
    verify_snapshot_document,
    write_snapshot_document,
)


def make_storage(names=("a", "b")):
    @computation("outer")
    def c():
        yield cached_here(lambda: "root value")
        for name in names:
            yield cached_here_under(name, lambda: f"value of {name}")
        yield computation("inner", cached_here(lambda: 42))

    storage = create_empty_storage()
    run_with_storage(storage, c)
    return storage


def test_iter_storages_walks_depth_first_with_paths():
    storage = make_storage()
    paths = [path for path, _ in iter_storages(storage)]
    assert paths == [(), ("outer",), ("outer", "inner")]


def test_storage_summary_counts_tree():
    summary = storage_summary(make_storage())
    assert summary == {"nodes": 3, "values": 4, "scopes": 2, "depth": 2}


def test_storage_to_dict_is_json_safe():
    doc = storage_to_dict(make_storage())
    json.dumps(doc)

    outer = doc["scopes"][0]
    assert outer["key"] == "'outer'"
    assert outer["used"] is False
    keys = sorted(value["key"] for value in outer["storage"]["values"])
    assert keys == ["'a'", "'b'", "DEFAULT_KEY"]
    inner = outer["storage"]["scopes"][0]["storage"]
    assert inner["values"][0]["type"] == "int"
    assert inner["values"][0]["value"] == "42"


def test_print_storage_outputs_tree(capsys):
    print_storage(make_storage())
    out = capsys.readouterr().out
    assert out.startswith("root\n")
    assert "scope 'outer'" in out
    assert "'value of a'" in out
    assert "    scope 'inner'" in out


def test_storage_graph_has_node_per_scope_and_value():
    pytest.importorskip("networkx")
    from cached.runtime.analysis import storage_graph

    graph = storage_graph(make_storage())
    kinds = [data["kind"] for _, data in graph.nodes(data=True)]
    assert kinds.count("scope") == 3
    assert kinds.count("value") == 4
    assert graph.number_of_edges() == 6


def test_build_dot_creates_clusters():
    pytest.importorskip("pydot")
    from cached.runtime.analysis import build_dot

    dot = build_dot(make_storage())
    text = dot.to_string()
    assert "cluster_scope_1" in text
    assert "root > 'outer'" in text


def test_snapshot_hash_ignores_timestamp_and_flags():
    storage = make_storage()
    doc_a = build_snapshot_document(storage, result="r")
    doc_b = dict(doc_a, timestamp="1970-01-01T00:00:00Z")
    doc_b["root"] = json.loads(json.dumps(doc_a["root"]))
    doc_b["root"]["scopes"][0]["used"] = True

    assert hash_snapshot_document(doc_a) == hash_snapshot_document(doc_b)
    assert "timestamp" not in canonicalize_snapshot(doc_a)


def test_diff_snapshots_reports_evicted_values():
    before = build_snapshot_document(make_storage(("a", "b")))
    after = build_snapshot_document(make_storage(("a",)))

    lines = diff_snapshots(before, after, "before", "after")
    assert lines[0] == "--- before"
    assert any(line.startswith("-") and "value of b" in line for line in lines)
    assert diff_snapshots(before, before) == []


def test_snapshot_round_trip_through_file(tmp_path, capsys):
    doc = build_snapshot_document(make_storage())
    path = tmp_path / "storage.cached.json"
    write_snapshot_document(doc, path)
    assert "Storage snapshot exported" in capsys.readouterr().out

    loaded = load_snapshot_document(path)
    assert hash_snapshot_document(loaded) == hash_snapshot_document(doc)


def test_verify_snapshot_document_rejects_bad_documents():
    with pytest.raises(ValueError):
        verify_snapshot_document([])
    with pytest.raises(ValueError):
        verify_snapshot_document({"root": {}})
    with pytest.raises(ValueError):
        verify_snapshot_document({"cached_version": "9", "root": {}})
