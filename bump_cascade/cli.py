"""CLI entry point for bump-cascade."""

from __future__ import annotations

import argparse
from importlib.metadata import version as pkg_version

from bump_cascade.detectors import DETECTORS
from bump_cascade.errors import BumpCascadeError
from bump_cascade.pipeline import run_bump, run_tag
from bump_cascade.shell import fatal

__version__ = pkg_version("bump-cascade")


def cmd_bump(args: argparse.Namespace) -> None:
    """Update the versions of the packages with changes."""
    try:
        run_bump(
            dry_run=args.dry_run,
            scope=args.scope,
            ignore=args.ignore,
            detector=args.detector,
        )
    except BumpCascadeError as exc:
        fatal(str(exc))


def cmd_tag(args: argparse.Namespace) -> None:
    """Git tag packages whose current version is not published yet."""
    try:
        ok = run_tag(force=args.force)
    except BumpCascadeError as exc:
        fatal(str(exc))
    if not ok:
        raise SystemExit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bump-cascade",
        description="Semantic-version bumps that follow your workspace's dependency graph.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # bump subcommand
    bump_parser = subparsers.add_parser(
        "bump", help="Update the version of the packages with changes."
    )
    bump_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Analyze but do not apply the version bump.",
    )
    bump_parser.add_argument(
        "--scope",
        action="append",
        default=[],
        metavar="GLOB",
        help="Include only packages with names matching the glob (repeatable).",
    )
    bump_parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="GLOB",
        help="Exclude packages with names matching the glob (repeatable).",
    )
    bump_parser.add_argument(
        "--detector",
        choices=sorted(DETECTORS),
        default=None,
        help="How to find each package's own changes. (default: from config)",
    )
    bump_parser.set_defaults(func=cmd_bump)

    # tag subcommand
    tag_parser = subparsers.add_parser("tag", help="Git tag packages.")
    tag_parser.add_argument(
        "-f", "--force", action="store_true", help="Tag without confirmation."
    )
    tag_parser.set_defaults(func=cmd_tag)

    return parser


def cli(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    args.func(args)
