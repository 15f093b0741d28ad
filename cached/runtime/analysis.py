"""Inspection, visualisation and export of storage trees."""
from __future__ import annotations

from pathlib import Path
from typing import Iterator

try:
    import networkx as nx
except ModuleNotFoundError:  # pragma: no cover
    nx = None

try:
    import matplotlib.pyplot as plt
except ModuleNotFoundError:  # pragma: no cover
    plt = None

try:
    import pydot
except ModuleNotFoundError:  # pragma: no cover
    pydot = None

from ..constants import NODE_COLORS
from .core import Storage


def iter_storages(storage: Storage, path: tuple = ()) -> Iterator[tuple[tuple, Storage]]:
    """Yield ``(path, storage)`` for a storage and all descendants, depth first."""
    yield path, storage
    for key, entry in storage.scopes.items():
        yield from iter_storages(entry.value, path + (key,))


def _path_label(path) -> str:
    return "root" + "".join(f" > {key!r}" for key in path)


def storage_to_dict(storage: Storage) -> dict:
    """Return a JSON-safe description of a storage tree."""

    values = [
        {
            "position": repr(address.position),
            "key": repr(address.key),
            "type": type(slot.value).__name__,
            "used": slot.used,
            "value": repr(slot.value),
        }
        for address, slot in storage.values.items()
    ]
    scopes = [
        {
            "key": repr(key),
            "used": entry.used,
            "storage": storage_to_dict(entry.value),
        }
        for key, entry in storage.scopes.items()
    ]
    return {"values": values, "scopes": scopes}


def storage_summary(storage: Storage) -> dict:
    nodes = values = scopes = depth = 0
    for path, node in iter_storages(storage):
        nodes += 1
        values += len(node.values)
        scopes += len(node.scopes)
        depth = max(depth, len(path))
    return {"nodes": nodes, "values": values, "scopes": scopes, "depth": depth}


def print_storage(storage: Storage, indent=0, label="root"):
    pad = "  " * indent
    print(f"{pad}{label}")
    for address, slot in storage.values.items():
        mark = " *" if slot.used else ""
        print(f"{pad}  {address!r} = {slot.value!r}{mark}")
    for key, entry in storage.scopes.items():
        print_storage(entry.value, indent + 1, f"scope {key!r}")


def storage_graph(storage: Storage):
    """Build a ``networkx.DiGraph`` with one node per storage and per slot."""

    if nx is None:
        raise RuntimeError("Storage graphs require networkx to be installed")

    graph = nx.DiGraph()
    for path, node in iter_storages(storage):
        node_id = _path_label(path)
        graph.add_node(
            node_id,
            label=repr(path[-1]) if path else "root",
            kind="scope",
            color=NODE_COLORS["scope"],
        )
        if path:
            graph.add_edge(_path_label(path[:-1]), node_id)
        for address, slot in node.values.items():
            value_id = f"{node_id} | {address!r}"
            graph.add_node(
                value_id,
                label=f"{address!r}\n{type(slot.value).__name__}",
                kind="value",
                color=NODE_COLORS["used" if slot.used else "value"],
            )
            graph.add_edge(node_id, value_id, style="dashed")
    return graph


def visualize_storage(storage: Storage, title="Cached storage"):  # pragma: no cover
    """Draw the storage graph with matplotlib."""

    if nx is None or plt is None:
        raise RuntimeError("Visualization requires networkx and matplotlib to be installed")

    graph = storage_graph(storage)
    labels = {n: graph.nodes[n].get("label", str(n)) for n in graph.nodes}
    colors = [graph.nodes[n].get("color", "#d3d3d3") for n in graph.nodes]
    positions = nx.spring_layout(graph, seed=42)

    plt.figure()
    nx.draw(
        graph,
        positions,
        with_labels=True,
        labels=labels,
        node_color=colors,
        edgecolors="black",
        font_size=8,
    )
    plt.title(title)
    plt.tight_layout()
    plt.show()


def build_dot(storage: Storage):
    """Build a ``pydot.Dot`` graph with one cluster per scope."""

    if pydot is None:
        raise RuntimeError("Graphviz export requires the optional pydot dependency")

    graph = pydot.Dot(
        "cached_storage",
        graph_type="digraph",
        rankdir="LR",
        fontname="Helvetica",
    )
    counter = 0

    def build_cluster(node, path):
        nonlocal counter
        counter += 1
        cluster = pydot.Cluster(
            f"scope_{counter}",
            label=_path_label(path),
            color="#7f8c8d",
            fontname="Helvetica",
            fontsize="10",
            style="rounded",
        )
        for address, slot in node.values.items():
            counter += 1
            color = NODE_COLORS["used" if slot.used else "value"]
            cluster.add_node(
                pydot.Node(
                    f"value_{counter}",
                    label=f"{address!r} : {type(slot.value).__name__}",
                    shape="box",
                    style="filled",
                    fillcolor=color,
                    fontname="Helvetica",
                )
            )
        for key, entry in node.scopes.items():
            cluster.add_subgraph(build_cluster(entry.value, path + (key,)))
        return cluster

    graph.add_subgraph(build_cluster(storage, ()))
    return graph


def export_graphviz(storage: Storage, output_path):  # pragma: no cover
    """Export a Graphviz SVG with one cluster per scope."""

    graph = build_dot(storage)
    output_path = Path(output_path)
    if output_path.parent and not output_path.parent.exists():
        output_path.parent.mkdir(parents=True, exist_ok=True)

    graph.write_svg(str(output_path))
    print(f"  ✓ Graphviz visualization exported → {output_path}")


__all__ = [
    "build_dot",
    "export_graphviz",
    "iter_storages",
    "print_storage",
    "storage_graph",
    "storage_summary",
    "storage_to_dict",
    "visualize_storage",
]
