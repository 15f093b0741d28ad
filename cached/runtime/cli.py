"""Command-line interface for the Cached runtime."""
from __future__ import annotations

import argparse
import sys

from ..constants import REPL_HISTORY_LIMIT, SNAPSHOT_FILE
from .analysis import export_graphviz, print_storage, storage_summary, visualize_storage
from .core import CachedError
from .driver import run_with_storage
from .snapshot import (
    build_snapshot_document,
    diff_snapshot_files,
    diff_snapshots,
    hash_snapshot_document,
    hash_snapshot_file,
    write_snapshot_document,
)


def _print_log(log):
    print("  log:")
    if log:
        for item in log:
            print("   ", item)
    else:
        print("    (no log entries)")


def _print_todo(app):
    print("  items:")
    lines = app.render()
    if not lines:
        print("    (empty)")
    for index, line in enumerate(lines):
        print(f"    {index}: {line}")


def run_repl(history_limit=REPL_HISTORY_LIMIT):  # pragma: no cover
    """Interactive TODO list driven through the cached view."""

    from ..sample import TodoApp

    log = []
    app = TodoApp(log=log)
    app.refresh()
    history = []

    def snapshot():
        doc = build_snapshot_document(app.storage)
        history.append({"index": app.runs, "doc": doc})
        if len(history) > history_limit:
            history.pop(0)
        return doc

    def resolve_entry(token):
        try:
            target = int(token)
        except ValueError:
            print("Snapshot index must be an integer.")
            return None
        for entry in reversed(history):
            if entry["index"] == target:
                return entry
        print(f"No snapshot for run #{target}.")
        return None

    print("Cached TODO shell. Enter :help for help")
    snapshot()
    _print_todo(app)

    while True:
        try:
            line = input("cached> ")
        except EOFError:
            print()
            break

        stripped = line.strip()
        if not stripped:
            continue
        cmd, _, arg = stripped.partition(" ")
        arg = arg.strip()
        log.clear()

        try:
            if cmd in (":quit", ":exit"):
                break
            if cmd == ":help":
                print(
                    "Commands: :add NAME, :toggle I, :remove I, :show, :storage, "
                    ":trace, :snapshot [FILE], :diff A B, :quit"
                )
                print(f"History: last {history_limit} snapshots kept.")
                continue
            if cmd == ":add":
                if not app.add_item(arg):
                    print("  ✗ Item name must not be blank")
            elif cmd == ":toggle":
                app.toggle(int(arg))
            elif cmd == ":remove":
                if not app.remove(int(arg)):
                    print("  ✗ Only finished items can be removed")
            elif cmd == ":show":
                _print_todo(app)
                continue
            elif cmd == ":storage":
                print_storage(app.storage)
                continue
            elif cmd == ":snapshot":
                doc = snapshot()
                if arg:
                    write_snapshot_document(doc, arg)
                print(f"SHA256(run_{app.runs}) = {hash_snapshot_document(doc)}")
                continue
            elif cmd == ":diff":
                parts = arg.split()
                if len(parts) != 2:
                    print("Usage: :diff <a> <b>")
                    continue
                entry_a = resolve_entry(parts[0])
                entry_b = resolve_entry(parts[1])
                if not entry_a or not entry_b:
                    continue
                lines = diff_snapshots(
                    entry_a["doc"],
                    entry_b["doc"],
                    f"run_{entry_a['index']}",
                    f"run_{entry_b['index']}",
                )
                for diff_line in lines or ["Snapshots are identical."]:
                    print(diff_line)
                continue
            else:
                print(f"Unknown command: {cmd}")
                continue
        except (ValueError, IndexError) as exc:
            print(f"  ✗ {exc}")
            continue

        snapshot()
        print(f"[run #{app.runs}]")
        _print_todo(app)
        _print_log(log)


def parse_args(args):
    argp = argparse.ArgumentParser(description="Cached incremental memoization runtime")

    argp.add_argument(
        "--demo",
        choices=("todo", "counter"),
        default="todo",
        help="Sample computation to run (default: todo)",
    )
    argp.add_argument(
        "--runs", type=int, default=3, help="Number of counter runs (default: 3)"
    )
    argp.add_argument(
        "--add", action="append", default=[], metavar="NAME", help="Add a TODO item"
    )
    argp.add_argument(
        "--toggle", action="append", type=int, default=[], metavar="I",
        help="Toggle the TODO item at index I",
    )
    argp.add_argument(
        "--remove", action="append", type=int, default=[], metavar="I",
        help="Remove the finished TODO item at index I",
    )
    argp.add_argument("--trace", action="store_true", help="Print the run log")
    argp.add_argument(
        "--print-storage", action="store_true", help="Print the storage tree after the demo"
    )
    argp.add_argument(
        "--snapshot",
        nargs="?",
        const=SNAPSHOT_FILE,
        metavar="FILE",
        help=f"Write a storage snapshot (default file: {SNAPSHOT_FILE})",
    )
    argp.add_argument("--hash", metavar="FILE", help="Compute hash of a storage snapshot")
    argp.add_argument(
        "--diff", nargs=2, metavar=("A", "B"), help="Compare two storage snapshots"
    )
    argp.add_argument("--repl", action="store_true", help="Start an interactive TODO shell")
    argp.add_argument(
        "--viz", metavar="OUTPUT", help="Export a Graphviz storage visualization to SVG"
    )
    argp.add_argument(
        "--visualize", action="store_true", help="Draw the storage graph with matplotlib"
    )

    return argp.parse_args(args)


def run_counter_demo(runs, log=None):
    """Run the two-counter sample ``runs`` times and return storage and results."""

    from ..sample import two_counters
    from .core import create_empty_storage

    storage = create_empty_storage()
    results = [run_with_storage(storage, two_counters, log) for _ in range(runs)]
    return storage, results


def run_todo_demo(adds=(), toggles=(), removes=(), log=None):
    """Refresh the TODO sample and apply scripted edits."""

    from ..sample import TodoApp

    app = TodoApp(log=log)
    app.refresh()
    for name in adds:
        if not app.add_item(name):
            print(f"  ✗ Cannot add blank item {name!r}")
    for index in toggles:
        app.toggle(index)
    for index in removes:
        if not app.remove(index):
            print(f"  ✗ Item {index} is not finished and cannot be removed")
    return app


def main(args):  # pragma: no cover
    params = parse_args(args)

    if params.diff:
        diff_snapshot_files(params.diff[0], params.diff[1])
        return
    if params.hash:
        hash_snapshot_file(params.hash)
        return
    if params.repl:
        run_repl()
        return

    log = [] if params.trace else None
    try:
        if params.demo == "counter":
            storage, results = run_counter_demo(params.runs, log)
            print("Counter runs:")
            for index, result in enumerate(results, start=1):
                print(f"  run #{index}: {result}")
            result = results[-1] if results else None
        else:
            app = run_todo_demo(params.add, params.toggle, params.remove, log)
            storage, result = app.storage, app.content
            print(f"TODO list after {app.runs} runs:")
            _print_todo(app)
    except (CachedError, IndexError) as exc:
        print(f"  ✗ {exc}")
        sys.exit(1)

    summary = storage_summary(storage)
    print(
        "\nStorage: {nodes} nodes, {values} values, {scopes} scopes, depth {depth}".format(
            **summary
        )
    )
    if log is not None:
        _print_log(log)
    if params.print_storage:
        print_storage(storage)
    if params.snapshot:
        write_snapshot_document(build_snapshot_document(storage, result), params.snapshot)
    if params.viz:
        export_graphviz(storage, params.viz)
    if params.visualize:
        visualize_storage(storage)


def _entry_point():  # pragma: no cover
    main(sys.argv[1:])


__all__ = [
    "main",
    "parse_args",
    "run_counter_demo",
    "run_repl",
    "run_todo_demo",
]


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:])
