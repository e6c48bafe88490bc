"""
hstore CLI - Command-line interface for hstore literals.

Commands:
  hstore inspect   - List the entries of a literal
  hstore get       - Print the values of one or more keys
  hstore normalize - Re-encode a literal in canonical '...'::hstore form
  hstore json      - Project a literal to JSON (strict or --loose)
  hstore validate  - Check that a literal parses
  hstore view      - Browse a literal in a terminal UI

Every command takes the literal as an argument, from -f/--file, or on stdin.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def _read_input(args: argparse.Namespace) -> str:
    """Resolve the literal from the positional argument, --file, or stdin."""
    from hstore.spec import MAX_INPUT_SIZE

    if getattr(args, "literal", None) is not None:
        return args.literal
    if getattr(args, "file", None):
        path = Path(args.file)
        if not path.is_file():
            print(f"Error: File not found: {args.file}", file=sys.stderr)
            sys.exit(1)
        file_size = path.stat().st_size
        if file_size > MAX_INPUT_SIZE:
            print(
                f"Error: File size {file_size} exceeds maximum {MAX_INPUT_SIZE} bytes",
                file=sys.stderr,
            )
            sys.exit(1)
        return path.read_text(encoding="utf-8")
    if not sys.stdin.isatty():
        return sys.stdin.read()
    print("Error: Provide a literal as an argument, via --file, or on stdin", file=sys.stderr)
    sys.exit(1)


def _load(args: argparse.Namespace):
    """Parse the input literal, exiting with status 1 on a format error."""
    from hstore.reader import HStoreReader, HStoreFormatError

    text = _read_input(args)
    try:
        return HStoreReader.parse(text)
    except HStoreFormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _emit(args: argparse.Namespace, result: str) -> None:
    """Print a result or write it to --output."""
    output = getattr(args, "output", None)
    if output:
        if ".." in Path(output).parts:
            print("Error: Output path must not contain '..' (path traversal)", file=sys.stderr)
            sys.exit(1)
        Path(output).write_text(result + "\n", encoding="utf-8")
        print(f"Wrote {output}")
    else:
        print(result)


def cmd_inspect(args: argparse.Namespace) -> None:
    """List entries of a literal."""
    from hstore.spec import encode_token

    hs = _load(args)
    nulls = sum(1 for v in hs.values() if v is None)
    print(f"ENTRIES: {len(hs)} ({nulls} null)")
    print()
    for key, value in hs.items():
        display = encode_token(value)
        if len(display) > 72:
            display = display[:69] + "..."
        print(f"  {encode_token(key)} => {display}")


def cmd_get(args: argparse.Namespace) -> None:
    """Print values of the requested keys, one per line.

    Values are printed as literal tokens: SQL NULL and missing keys as a bare
    NULL, the string "NULL" quoted.
    """
    from hstore.spec import encode_token

    hs = _load(args)
    missing = [k for k in args.keys if k not in hs]
    for value in hs.get_many(*args.keys):
        print(encode_token(value))
    if missing:
        print(f"Missing: {', '.join(missing)}", file=sys.stderr)
        sys.exit(1)


def cmd_normalize(args: argparse.Namespace) -> None:
    """Re-encode a literal in canonical form."""
    hs = _load(args)
    _emit(args, hs.to_text())


def cmd_json(args: argparse.Namespace) -> None:
    """Project a literal to JSON."""
    from hstore.converters import to_json, to_json_loose

    hs = _load(args)
    if args.loose:
        _emit(args, to_json_loose(hs))
    else:
        _emit(args, to_json(hs, indent=args.indent))


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate a literal."""
    from hstore.reader import HStoreReader, HStoreFormatError

    text = _read_input(args)
    try:
        hs = HStoreReader.parse(text)
    except HStoreFormatError as e:
        print(f"FAIL: parse error: {e}")
        sys.exit(1)
    print(f"OK: {len(hs)} entries")


def cmd_view(args: argparse.Namespace) -> None:
    """Browse a literal in the TUI viewer."""
    hs = _load(args)
    try:
        from hstore.tui.viewer import run_viewer
    except ImportError:
        print(
            "TUI viewer requires the 'textual' package.\n"
            "Install it with: pip install \"pyhstore[tui]\"",
            file=sys.stderr,
        )
        sys.exit(1)
    if args.file:
        title = args.file
    else:
        title = "argument" if args.literal is not None else "stdin"
    run_viewer(hs, title=title)


def _add_input_args(p: argparse.ArgumentParser, positional: bool = True) -> None:
    if positional:
        p.add_argument("literal", nargs="?", default=None, help="hstore literal (or use --file / stdin)")
    p.add_argument("-f", "--file", help="Read the literal from a file")


def _configure_logging(verbose: bool) -> None:
    from hstore.spec import LOG_LEVEL_ENV

    level_name = "DEBUG" if verbose else os.environ.get(LOG_LEVEL_ENV, "WARNING")
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    from hstore import __version__

    parser = argparse.ArgumentParser(
        prog="hstore",
        description="Parse, normalize and project PostgreSQL hstore literals.",
    )
    parser.add_argument("--version", action="version", version=f"hstore {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    # inspect
    p_inspect = sub.add_parser("inspect", help="List the entries of a literal")
    _add_input_args(p_inspect)

    # get
    p_get = sub.add_parser("get", help="Print values of keys")
    p_get.add_argument("keys", nargs="+", help="Keys to look up")
    _add_input_args(p_get, positional=False)
    p_get.add_argument("-l", "--literal", help="hstore literal (or use --file / stdin)")

    # normalize
    p_normalize = sub.add_parser("normalize", help="Re-encode in canonical form")
    _add_input_args(p_normalize)
    p_normalize.add_argument("-o", "--output", help="Output file path")

    # json
    p_json = sub.add_parser("json", help="Project to JSON")
    _add_input_args(p_json)
    p_json.add_argument("--loose", action="store_true", help="Guess booleans and numbers from value text")
    p_json.add_argument("--indent", type=int, default=None, help="Pretty-print with this indent (strict only)")
    p_json.add_argument("-o", "--output", help="Output file path")

    # validate
    p_validate = sub.add_parser("validate", help="Check that a literal parses")
    _add_input_args(p_validate)

    # view
    p_view = sub.add_parser("view", help="Browse a literal in a terminal UI")
    _add_input_args(p_view)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    commands = {
        "inspect": cmd_inspect,
        "get": cmd_get,
        "normalize": cmd_normalize,
        "json": cmd_json,
        "validate": cmd_validate,
        "view": cmd_view,
    }

    logger.debug("Running command %s", args.command)
    commands[args.command](args)


if __name__ == "__main__":
    main()
