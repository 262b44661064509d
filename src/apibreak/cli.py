"""apibreak CLI: API diff and version advice commands."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import List, Optional

EXIT_OK = 0
EXIT_BREAKING = 1  # Also used for unexpected errors
EXIT_INPUT_ERROR = 2


def _configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _build_parser() -> argparse.ArgumentParser:
    # Get version for --version argument (handle PackageNotFoundError)
    try:
        apibreak_version = get_version("apibreak")
    except PackageNotFoundError:
        apibreak_version = "dev"

    parser = argparse.ArgumentParser(
        prog="apibreak",
        description="apibreak: detect breaking public API changes and propose the next semantic version"
    )
    parser.add_argument("--version", action="version", version=f"apibreak {apibreak_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "-v", "--verbose",
        dest="verbosity",
        action="count",
        default=None,
        help="Increase log verbosity (-v info, -vv debug)."
    )
    parent_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a JSON settings file (defaults to ./apibreak.json if present)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # diff command
    diff_parser = subparsers.add_parser(
        "diff",
        help="Compare two API trees and propose the next version",
        parents=[parent_parser]
    )
    diff_parser.add_argument(
        "--from",
        dest="old_tree",
        type=Path,
        required=True,
        help="Path to the API tree of the previous release"
    )
    diff_parser.add_argument(
        "--to",
        dest="new_tree",
        type=Path,
        required=True,
        help="Path to the API tree of the current code"
    )
    diff_parser.add_argument(
        "--current-version",
        default=None,
        help="Version of the previous release (defaults to the old tree's crate_version)"
    )
    diff_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default=None,
        help="Report format (default: text)"
    )
    diff_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the report to this file instead of stdout"
    )
    diff_parser.add_argument(
        "--fail-on-breaking",
        action="store_true",
        default=None,
        help="Exit with status 1 when a breaking change is found"
    )

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Check that an API tree loads and translates",
        parents=[parent_parser]
    )
    check_parser.add_argument(
        "tree",
        type=Path,
        help="Path to the API tree"
    )
    return parser


def _run_diff(args: argparse.Namespace, settings) -> int:
    from apibreak.api import _diff_internal
    from apibreak.report import render_json, render_text

    _, _, diagnosis, proposed, result = _diff_internal(
        args.old_tree.resolve(),
        args.new_tree.resolve(),
        current_version=args.current_version,
    )

    if settings.format == "json":
        content = render_json(result)
    else:
        content = render_text(diagnosis, proposed)

    if args.output is not None:
        output = args.output.resolve()
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(content, encoding="utf-8")
        if not args.quiet:
            print("[OK] Diff complete")
            print(f"  Report: {output}")
            print(f"  Next version: {result.next_version}")
    elif not args.quiet:
        sys.stdout.write(content)

    if result.breaking and settings.fail_on_breaking:
        return EXIT_BREAKING
    return EXIT_OK


def _run_check(args: argparse.Namespace) -> int:
    from apibreak.api import check

    result = check(args.tree.resolve())
    if result.ok:
        if not args.quiet:
            print("[OK] API tree is valid")
            print(f"  Crate: {result.crate}")
            print(f"  Public items: {result.item_count}")
        return EXIT_OK

    for issue in result.errors:
        print(f"Error: {issue.code}: {issue.message}", file=sys.stderr)
    return EXIT_INPUT_ERROR


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point for apibreak commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_BREAKING)

    from apibreak.config import load_settings, log_level_for

    try:
        settings = load_settings(
            config_path=args.config,
            format=getattr(args, "format", None),
            fail_on_breaking=getattr(args, "fail_on_breaking", None),
            verbosity=args.verbosity,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    _configure_logging(log_level_for(settings, quiet=args.quiet))

    try:
        if args.command == "diff":
            exit_code = _run_diff(args, settings)
        else:
            exit_code = _run_check(args)
    except ValueError as e:
        # MalformedTreeError, TreeLoadError and bad versions are all ValueErrors
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(EXIT_BREAKING)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
