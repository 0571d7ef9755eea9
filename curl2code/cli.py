"""Command-line interface and input handling for curl2code."""

import argparse
import os
import sys

from curl2code import __version__
from curl2code.emitters import TARGETS
from curl2code.engine import DEFAULT_TIMEOUT

DEFAULT_TARGET = "python"


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for the curl2code CLI."""
    parser = argparse.ArgumentParser(
        prog="curl2code",
        description=(
            "curl2code v{ver} — Convert a curl command into HTTP client "
            "code.\n\n"
            "Reads a curl invocation (argument, file or stdin), prints the "
            "equivalent source for the chosen target and can optionally "
            "perform the request for a live preview."
        ).format(ver=__version__),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  curl2code -t go \"curl -X POST -H 'Content-Type: "
            "application/json' -d '{\\\"a\\\":1}' https://api.test/items\"\n"
            "  curl2code -t rust -f request.sh --save-dir out/\n"
            "  pbpaste | curl2code -t javascript --execute\n"
        ),
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "command",
        nargs="?",
        default=None,
        help="The curl invocation. Read from stdin when omitted.",
    )
    source.add_argument(
        "-f",
        "--file",
        default=None,
        help="Read the curl invocation from a file ('-' for stdin).",
    )

    parser.add_argument(
        "-t",
        "--target",
        default=DEFAULT_TARGET,
        choices=list(TARGETS),
        help=f"Target language/client (default: {DEFAULT_TARGET}).",
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "-o",
        "--output",
        default=None,
        help="Write the generated code to this file instead of stdout.",
    )
    output.add_argument(
        "--save-dir",
        default=None,
        help="Write the generated code to DIR/request.<ext>.",
    )

    parser.add_argument(
        "--execute",
        action="store_true",
        help="Perform the request live and print the response to stderr.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Live preview timeout in seconds (default: {DEFAULT_TIMEOUT:g}).",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip TLS certificate verification for the live preview.",
    )
    parser.add_argument(
        "--show-ignored",
        action="store_true",
        help="Warn about curl options that were not translated.",
    )
    parser.add_argument(
        "--list-targets",
        action="store_true",
        help="List the supported targets and exit.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments.

    Raises:
        SystemExit: If the input file is missing or unreadable, the save
            directory does not exist, or the timeout is not positive.
    """
    if args.file and args.file != "-":
        if not os.path.isfile(args.file):
            print(f"Error: Input file not found: '{args.file}'", file=sys.stderr)
            sys.exit(1)

        if not os.access(args.file, os.R_OK):
            print(
                f"Error: Input file is not readable: '{args.file}'",
                file=sys.stderr,
            )
            sys.exit(1)

    if args.command is not None and not args.command.strip():
        print("Error: curl command cannot be empty.", file=sys.stderr)
        sys.exit(1)

    if args.save_dir and not os.path.isdir(args.save_dir):
        print(
            f"Error: Save directory not found: '{args.save_dir}'",
            file=sys.stderr,
        )
        sys.exit(1)

    if args.timeout <= 0:
        print("Error: Timeout must be positive.", file=sys.stderr)
        sys.exit(1)


def parse_cli(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse and validate command-line arguments.

    Args:
        argv: Optional list of arguments (defaults to sys.argv).

    Returns:
        Parsed and validated argument namespace.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(args)
    return args
