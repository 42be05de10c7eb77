"""Command-line interface for tgrelay.

WHY: Three ways to use the package from a terminal: convert a file or
piped text to Telegram HTML, run the Telegram relay bot, or serve the
conversion HTTP API.

HOW: argparse with one subcommand per mode. ``convert`` reads a file or
stdin and writes HTML to stdout (so it can be piped), status and errors go
to stderr. ``run`` and ``serve`` configure logging and block.

RULES:
- ``convert [FILE] [--max-len N]``: with --max-len, chunks are separated
  by a blank line
- ``run``: requires TELEGRAM_BOT_TOKEN, TELEGRAM_WHITELIST, ANTHROPIC_API_KEY
- ``serve [--host H] [--port P]``
- Errors print ``Error: ...`` to stderr and exit with status 1
- Ctrl-C exits with status 130
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tgrelay import __version__
from tgrelay.config import DEBUG


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _read_input(path: Optional[str]) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    input_path = Path(path)
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))
    return input_path.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_convert(args: argparse.Namespace) -> None:
    from tgrelay.core.converter import convert
    from tgrelay.core.slicing import render_reply

    text = _read_input(args.file)

    if args.max_len is None:
        sys.stdout.write(convert(text))
        sys.stdout.write("\n")
        return

    if args.max_len < 1:
        _fail("--max-len must be at least 1")

    chunks = render_reply(text, args.max_len)
    _status("Rendered {} message(s)".format(len(chunks)))
    sys.stdout.write("\n\n".join(chunks))
    sys.stdout.write("\n")


def _cmd_run(args: argparse.Namespace) -> None:
    import asyncio

    from tgrelay.config import load_settings
    from tgrelay.telegram.bot import run_bot

    try:
        settings = load_settings()
    except ValueError as e:
        _fail(str(e))

    _configure_logging(settings.debug or args.debug)
    try:
        asyncio.run(run_bot(settings))
    except KeyboardInterrupt:
        _status("\nStopped.")
        sys.exit(130)


def _cmd_serve(args: argparse.Namespace) -> None:
    from tgrelay.server.app import run_api

    _configure_logging(args.debug)
    run_api(host=args.host, port=args.port)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Separate from main() so tests can inspect it without running anything.
    """
    parser = argparse.ArgumentParser(
        prog="tgrelay",
        description="Convert Markdown to Telegram HTML and relay Telegram chats to Claude.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    parser.add_argument(
        "--debug",
        action="store_true",
        default=DEBUG,
        help="Enable debug logging (default: TGRELAY_DEBUG).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    convert_parser = subparsers.add_parser(
        "convert",
        help="Convert a file (or stdin) to Telegram HTML.",
    )
    convert_parser.add_argument(
        "file",
        nargs="?",
        default=None,
        help="Input file. Reads stdin when omitted or '-'.",
    )
    convert_parser.add_argument(
        "--max-len",
        type=int,
        default=None,
        help="Split into messages of at most this many characters before converting.",
    )
    convert_parser.set_defaults(func=_cmd_convert)

    run_parser = subparsers.add_parser("run", help="Run the Telegram relay bot.")
    run_parser.set_defaults(func=_cmd_run)

    serve_parser = subparsers.add_parser("serve", help="Serve the conversion HTTP API.")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: %(default)s).")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port (default: %(default)s).")
    serve_parser.set_defaults(func=_cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``tgrelay`` and ``python -m tgrelay``.

    argv=None means use sys.argv; explicit argv is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
