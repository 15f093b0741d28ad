"""Storage snapshot documents for debugging and diffing runs.

A snapshot records what a storage held after a run. It is a description for
people and tools; storages are never rebuilt from one.
"""

from __future__ import annotations

from datetime import datetime, timezone
import difflib
import hashlib
import json

from ..constants import SNAPSHOT_VERSION
from .analysis import storage_summary, storage_to_dict
from .core import Storage


def build_snapshot_document(storage: Storage, result=None) -> dict:
    """Create an in-memory snapshot of ``storage``."""

    return {
        "cached_version": SNAPSHOT_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "summary": storage_summary(storage),
        "result": repr(result),
        "root": storage_to_dict(storage),
    }


def write_snapshot_document(doc, filename):
    with open(filename, "w", encoding="utf-8") as f:
        json.dump(doc, f, indent=2)
    print(f"  ✓ Storage snapshot exported → {filename}")
    return doc


def load_snapshot_document(filename):
    with open(filename, "r", encoding="utf-8") as f:
        doc = json.load(f)
    verify_snapshot_document(doc)
    return doc


def verify_snapshot_document(doc):
    if not isinstance(doc, dict):
        raise ValueError("Snapshot must be a JSON object")
    for field in ("cached_version", "root"):
        if field not in doc:
            raise ValueError(f"Snapshot missing '{field}'")
    if doc["cached_version"] != SNAPSHOT_VERSION:
        raise ValueError(
            f"Unsupported snapshot version {doc['cached_version']!r}, "
            f"expected {SNAPSHOT_VERSION!r}"
        )
    return True


def canonicalize_snapshot(doc):
    """Drop volatile fields so equal storages produce equal documents."""

    canon = {key: value for key, value in doc.items() if key != "timestamp"}

    def strip_flags(node):
        return {
            "values": sorted(
                (
                    {k: v for k, v in value.items() if k != "used"}
                    for value in node.get("values", [])
                ),
                key=lambda v: (v["position"], v["key"]),
            ),
            "scopes": sorted(
                (
                    {"key": scope["key"], "storage": strip_flags(scope["storage"])}
                    for scope in node.get("scopes", [])
                ),
                key=lambda s: s["key"],
            ),
        }

    canon["root"] = strip_flags(doc["root"])
    return canon


def hash_snapshot_document(doc) -> str:
    canon = canonicalize_snapshot(doc)
    data = json.dumps(canon, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def diff_snapshots(doc_a, doc_b, name_a="a", name_b="b") -> list[str]:
    text_a = json.dumps(canonicalize_snapshot(doc_a), indent=2, sort_keys=True).splitlines()
    text_b = json.dumps(canonicalize_snapshot(doc_b), indent=2, sort_keys=True).splitlines()
    return list(
        difflib.unified_diff(text_a, text_b, fromfile=name_a, tofile=name_b, lineterm="")
    )


def diff_snapshot_files(path_a, path_b):  # pragma: no cover - thin CLI wrapper
    lines = diff_snapshots(
        load_snapshot_document(path_a), load_snapshot_document(path_b), str(path_a), str(path_b)
    )
    if lines:
        for line in lines:
            print(line)
    else:
        print("Snapshots are identical.")
    return lines


def hash_snapshot_file(path):  # pragma: no cover - thin CLI wrapper
    digest = hash_snapshot_document(load_snapshot_document(path))
    print(f"SHA256({path}) = {digest}")
    return digest


__all__ = [
    "build_snapshot_document",
    "canonicalize_snapshot",
    "diff_snapshot_files",
    "diff_snapshots",
    "hash_snapshot_document",
    "hash_snapshot_file",
    "load_snapshot_document",
    "verify_snapshot_document",
    "write_snapshot_document",
]
