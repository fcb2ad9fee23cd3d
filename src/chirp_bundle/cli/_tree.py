"""``chirp-bundle tree`` — print the unit tree built from a source directory.

Shows each unit's origin and effective freshness, which is what the
artifact cache compares against.
"""

import argparse
import sys
from datetime import datetime

from chirp_bundle.builder import build_tree
from chirp_bundle.compiler import KidaCompiler
from chirp_bundle.errors import BundleError
from chirp_bundle.freshness import EPOCH, effective_freshness
from chirp_bundle.units import walk


def run_tree(args: argparse.Namespace) -> None:
    """Build the tree for ``args.source`` and print it as an indented table."""
    try:
        root = build_tree(args.source, KidaCompiler(), extension=args.extension)
    except BundleError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    rows: list[tuple[str, str, str]] = []
    for key_path, unit in walk(root):
        label = "  " * len(key_path) + (key_path[-1] if key_path else "<root>")
        stamp = effective_freshness(unit)
        fresh = "-" if stamp == EPOCH else datetime.fromtimestamp(stamp).isoformat(timespec="seconds")
        rows.append((label, unit.origin, fresh))

    max_label = max(max(len(r[0]) for r in rows), 4)  # "UNIT" header
    fmt = f"{{:<{max_label}}}  {{:<9}}  {{}}"
    print(fmt.format("UNIT", "ORIGIN", "FRESHNESS"))
    print("-" * min(max_label + 32, 80))
    for label, origin, fresh in rows:
        print(fmt.format(label, origin, fresh))
