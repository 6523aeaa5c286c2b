"""Sitemill CLI — sitemill generate / update / clean / ping.

Entry point for the ``sitemill`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the sitemill CLI."""
    parser = argparse.ArgumentParser(
        prog="sitemill",
        description="Partitioned sitemap generation for large record sets.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # sitemill generate
    generate_parser = subparsers.add_parser(
        "generate",
        help="Write sitemaps for every configured source",
    )
    _add_site_arguments(generate_parser)
    generate_parser.add_argument(
        "--clean", action="store_true", help="Remove existing sitemaps first",
    )
    generate_parser.add_argument(
        "--ping", action="store_true", help="Ping enabled search engines afterwards",
    )
    _add_gzip_argument(generate_parser)

    # sitemill update
    update_parser = subparsers.add_parser(
        "update",
        help="Append sitemaps for records added since the last run",
    )
    _add_site_arguments(update_parser)
    update_parser.add_argument(
        "--ping", action="store_true", help="Ping enabled search engines afterwards",
    )
    _add_gzip_argument(update_parser)

    # sitemill clean
    clean_parser = subparsers.add_parser("clean", help="Remove generated sitemaps")
    _add_site_arguments(clean_parser)

    # sitemill ping
    ping_parser = subparsers.add_parser(
        "ping",
        help="Ping enabled search engines with the current sitemap index",
    )
    _add_site_arguments(ping_parser)

    return parser


def _add_site_arguments(parser: argparse.ArgumentParser) -> None:
    """Project root plus the overrides that locate the site."""
    parser.add_argument("root", nargs="?", default=".", help="Project root directory")
    parser.add_argument("--base-url", default=None, help="Public site URL")
    parser.add_argument("--document-root", default=None, help="Site document root")


def _add_gzip_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--no-gzip", dest="gzip", action="store_false", default=None,
        help="Write plain .xml documents",
    )


def _get_version() -> str:
    """Get the package version."""
    from sitemill import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from sitemill._errors import SitemillError
    from sitemill.app import clean, generate, ping

    overrides = {"base_url": args.base_url, "document_root": args.document_root}

    try:
        if args.command == "generate":
            generate(
                root=args.root,
                clean=args.clean,
                ping=args.ping,
                gzip=args.gzip,
                **overrides,
            )
        elif args.command == "update":
            generate(root=args.root, update=True, ping=args.ping, gzip=args.gzip, **overrides)
        elif args.command == "clean":
            clean(root=args.root, **overrides)
        elif args.command == "ping":
            ping(root=args.root, **overrides)
    except SitemillError as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
