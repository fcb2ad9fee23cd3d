"""``chirp-bundle build`` — write one artifact ahead of time.

Runs the same freshness check as the middleware, so repeated builds of
an unchanged tree leave the existing file alone.
"""

import argparse
import sys

from chirp_bundle.bundler import TemplateBundler
from chirp_bundle.config import BundleConfig
from chirp_bundle.errors import BundleError
from chirp_bundle.gate import resolve


def run_build(args: argparse.Namespace) -> None:
    """Build or reuse the artifact for ``args.key`` and report which."""
    key_path = tuple(part for part in args.key.split("/") if part)
    try:
        config = BundleConfig(
            source_dir=args.source,
            public_dir=args.public,
            prefix=args.prefix,
            global_name=args.global_name,
            extension=args.extension,
            reload=args.force,
        )
        bundler = TemplateBundler(config)
        unit = resolve(bundler.tree, key_path)
        outcome = bundler.gate.serve_or_build(unit, key_path)
    except BundleError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print(f"{outcome.action.value} {outcome.path}")
