"""chirp-bundle CLI — build artifacts and inspect template trees.

Entry point registered as ``chirp-bundle`` in ``pyproject.toml``::

    [project.scripts]
    chirp-bundle = "chirp_bundle.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``chirp-bundle`` command."""
    parser = argparse.ArgumentParser(
        prog="chirp-bundle",
        description="chirp-bundle — compile template trees into loadable Python bundles.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- chirp-bundle build -----------------------------------------------
    build_parser = subparsers.add_parser("build", help="Write the artifact for a template subtree")
    build_parser.add_argument("source", help="Template source directory")
    build_parser.add_argument("public", help="Public directory artifacts are written under")
    build_parser.add_argument("--prefix", default="/templates", help="URL prefix (default: /templates)")
    build_parser.add_argument(
        "--global",
        dest="global_name",
        default="Templates",
        help="Name the artifact publishes its tree under (default: Templates)",
    )
    build_parser.add_argument(
        "--key",
        default="",
        help="Slash-separated key path of the subtree (default: whole tree)",
    )
    build_parser.add_argument("--extension", default=".html", help="Template file extension")
    build_parser.add_argument(
        "--force",
        action="store_true",
        help="Rebuild even if the existing artifact is fresh",
    )

    # -- chirp-bundle tree ------------------------------------------------
    tree_parser = subparsers.add_parser("tree", help="Print the unit tree for a source directory")
    tree_parser.add_argument("source", help="Template source directory")
    tree_parser.add_argument("--extension", default=".html", help="Template file extension")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "build":
        from chirp_bundle.cli._build import run_build

        run_build(args)
    elif args.command == "tree":
        from chirp_bundle.cli._tree import run_tree

        run_tree(args)
