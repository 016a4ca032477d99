#!/usr/bin/env python3
"""blockgen/main.py - command-line front end.

Usage examples
--------------
    # Generate Python from a workspace file
    python -m blockgen generate program.sexp -o program.py

    # Zero-based indices, two-space indent, an iteration guard in every loop
    python -m blockgen generate program.sexp --zero-based --indent 2 \\
        --loop-trap 'check_timeout(%1)'

    # Normalise a workspace file (ids filled in, one stack per line)
    python -m blockgen parse program.sexp

    # List the node kinds the generator understands
    python -m blockgen kinds

Exit codes
----------
    0   Success.
    1   The workspace could not be parsed or generated.
    2   Infrastructure failure (bad file, bad option, unexpected crash).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Optional, Sequence, TextIO

from blockgen import __version__
from blockgen.errors import BlockgenError, ConfigError
from blockgen.generator import Generator, GeneratorConfig
from blockgen.looptrap import LoopExit
from blockgen.parser import dump_workspace, parse_file

_log = logging.getLogger("blockgen")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``blockgen`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("blockgen")
    # Repeated main() calls in one process must not stack handlers.
    for old in [h for h in root.handlers if getattr(h, "_blockgen_cli", False)]:
        root.removeHandler(old)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler._blockgen_cli = True  # type: ignore[attr-defined]
    root.setLevel(level)
    root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _write_output(dest: Optional[str], text: str) -> None:
    stream = _open_output(dest)
    try:
        stream.write(text)
    finally:
        if stream is not sys.stdout:
            stream.close()


def _report(exc: BlockgenError, fmt: str) -> None:
    """Write a structured error to stderr."""
    if fmt == "json":
        sys.stderr.write(json.dumps(exc.to_json()) + "\n")
    else:
        sys.stderr.write(exc.to_gcc_format() + "\n")


def _config_from_args(args: argparse.Namespace) -> GeneratorConfig:
    if args.indent < 1:
        raise ConfigError("indent", f"expected a positive number of spaces, got {args.indent}")
    return GeneratorConfig(
        one_based_index=not args.zero_based,
        indent=" " * args.indent,
        infinite_loop_trap=args.loop_trap,
        loop_exit=LoopExit(args.loop_exit),
        statement_prefix=args.statement_prefix,
        comment_wrap=args.comment_wrap,
        declare_variables=not args.no_declare_variables,
    )


# ===========================================================================
# Subcommands
# ===========================================================================

def cmd_generate(args: argparse.Namespace) -> int:
    """Generate Python source from a workspace file."""
    path = _resolve_path(args.file, "workspace file")
    try:
        config = _config_from_args(args)
    except ConfigError as exc:
        _report(exc, args.error_format)
        return EXIT_INFRA

    _log.info("Generating %s", path)
    try:
        workspace = parse_file(str(path))
        program = Generator(config=config).generate(workspace)
    except BlockgenError as exc:
        _report(exc, args.error_format)
        return EXIT_ERROR

    text = program.code
    if args.header:
        text = program.get_metadata_comment() + "\n" + text
    _write_output(args.output, text)
    _log.info(
        "Generated %d line(s), %d helper(s), kinds: %s",
        program.code.count("\n"), len(program.helpers), ", ".join(program.kinds),
    )
    return EXIT_OK


def cmd_parse(args: argparse.Namespace) -> int:
    """Parse a workspace file and print its normalised S-expression."""
    path = _resolve_path(args.file, "workspace file")
    try:
        workspace = parse_file(str(path))
    except BlockgenError as exc:
        _report(exc, args.error_format)
        return EXIT_ERROR
    _write_output(args.output, dump_workspace(workspace))
    return EXIT_OK


def cmd_kinds(args: argparse.Namespace) -> int:
    """List the node kinds with a registered rule."""
    for kind in Generator().kinds:
        sys.stdout.write(kind + "\n")
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="blockgen",
        description=(
            "blockgen - generate Python source from visual-program node trees.\n\n"
            "Workspaces are read from S-expression files."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              blockgen generate program.sexp -o program.py
              blockgen generate program.sexp --zero-based --loop-exit signal
              blockgen parse program.sexp
              blockgen kinds
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    def _add_io_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("file", metavar="FILE", help="Workspace S-expression file.")
        p.add_argument(
            "-o", "--output",
            default=None,
            metavar="FILE",
            help='Output file ("-" or omit for stdout).',
        )
        p.add_argument(
            "--error-format",
            choices=["gcc", "json"],
            default="gcc",
            help="Format of error reports on stderr (default: gcc).",
        )

    # --- generate ----------------------------------------------------------
    p_generate = subparsers.add_parser(
        "generate",
        help="Generate Python source from a workspace.",
    )
    _add_io_args(p_generate)
    g = p_generate.add_argument_group("generation options")
    g.add_argument(
        "--zero-based",
        action="store_true",
        help="Treat user-facing indices as zero-based (default: one-based).",
    )
    g.add_argument(
        "--indent",
        type=int,
        default=4,
        metavar="N",
        help="Spaces per indentation level (default: 4).",
    )
    g.add_argument(
        "--loop-trap",
        default=None,
        metavar="TEMPLATE",
        help="Statement prepended to every loop body; %%1 is the loop id.",
    )
    g.add_argument(
        "--loop-exit",
        choices=[e.value for e in LoopExit],
        default=LoopExit.DIRECT.value,
        help="How break/continue leave loops (default: direct).",
    )
    g.add_argument(
        "--statement-prefix",
        default=None,
        metavar="TEMPLATE",
        help="Statement emitted before every statement; %%1 is the node id.",
    )
    g.add_argument(
        "--comment-wrap",
        type=int,
        default=60,
        metavar="N",
        help="Column at which node comments are wrapped (default: 60).",
    )
    g.add_argument(
        "--no-declare-variables",
        action="store_true",
        help="Do not emit 'name = None' declarations for workspace variables.",
    )
    g.add_argument(
        "--header",
        action="store_true",
        help="Prefix the output with a metadata comment.",
    )
    p_generate.set_defaults(func=cmd_generate)

    # --- parse -------------------------------------------------------------
    p_parse = subparsers.add_parser(
        "parse",
        help="Parse a workspace and print its normalised S-expression.",
    )
    _add_io_args(p_parse)
    p_parse.set_defaults(func=cmd_parse)

    # --- kinds -------------------------------------------------------------
    p_kinds = subparsers.add_parser(
        "kinds",
        help="List supported node kinds.",
    )
    p_kinds.set_defaults(func=cmd_kinds)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the blockgen CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130  # Standard UNIX convention for SIGINT
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
