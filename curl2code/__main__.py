"""curl2code — Main entry point.

Ties together the CLI, parser, emitters and preview engine: read a curl
invocation, print the generated code, and optionally run the request.
"""

import logging
import os
import sys

from curl2code.cli import parse_cli
from curl2code.emitters import TARGETS, generate
from curl2code.engine import PreviewRunner, print_report
from curl2code.errors import ExecutionError, InvalidInvocation, UnsupportedTarget
from curl2code.parser import load_invocation_file, parse_invocation


def read_invocation(command: str | None, filepath: str | None) -> str:
    """Return the raw invocation from the argument, a file, or stdin."""
    if command is not None:
        return command
    if filepath and filepath != "-":
        return load_invocation_file(filepath)
    return sys.stdin.read()


def main(argv: list[str] | None = None) -> int:
    """Run the curl2code tool.

    Args:
        argv: Optional argument list (defaults to sys.argv).

    Returns:
        Exit code (0 = success, 1 = code generated but live preview
        failed, 2 = input or conversion error).
    """
    args = parse_cli(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    if args.list_targets:
        for target in TARGETS.values():
            print(f"{target.target_id:<16} .{target.extension:<6} {target.label}")
        return 0

    try:
        raw_text = read_invocation(args.command, args.file)
    except (FileNotFoundError, IOError, UnicodeDecodeError) as exc:
        print(f"Error reading curl command: {exc}", file=sys.stderr)
        return 2

    try:
        descriptor = parse_invocation(raw_text)
    except InvalidInvocation as exc:
        print(f"Error parsing curl command: {exc}", file=sys.stderr)
        return 2

    if args.show_ignored:
        for token in descriptor.ignored:
            print(f"Warning: ignoring {token!r}", file=sys.stderr)

    try:
        result = generate(descriptor, args.target)
    except UnsupportedTarget as exc:
        print(f"Error generating code: {exc}", file=sys.stderr)
        return 2

    out_path = args.output
    if args.save_dir:
        out_path = os.path.join(args.save_dir, result.filename())
    if out_path:
        try:
            with open(out_path, "w", encoding="utf-8") as fh:
                fh.write(result.code)
        except OSError as exc:
            print(f"Error writing output file: {exc}", file=sys.stderr)
            return 2
        print(f"[*] Wrote {args.target} code to: {out_path}", file=sys.stderr)
    else:
        sys.stdout.write(result.code)
        sys.stdout.flush()

    if not args.execute:
        return 0

    # --- Live preview ---
    print(
        f"\n[*] Executing {descriptor.method} {descriptor.url}...",
        file=sys.stderr,
    )
    with PreviewRunner(
        max_workers=1, timeout=args.timeout, verify=not args.insecure
    ) as runner:
        handle = runner.submit(descriptor)
        try:
            preview = handle.result()
        except KeyboardInterrupt:
            handle.cancel()
            print("Live preview cancelled.", file=sys.stderr)
            return 1
        except ExecutionError as exc:
            print(f"Error during live preview: {exc}", file=sys.stderr)
            return 1

    print_report(preview, file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
