"""Lox entrypoint module exposing the command-line interface."""

import argparse
import logging
import sys
from typing import List, Optional

from lox_lang import (
    EXIT_NO_INPUT,
    EXIT_RUNTIME_ERROR,
    EXIT_STATIC_ERROR,
    AstPrinter,
    ConsoleIO,
    IOHandler,
    Lox,
    RuntimeConfig,
    parse,
    scan,
)
from lox_lang.diagnostics import NESTING_TOO_DEEP

logger = logging.getLogger("lox")


def run_repl(session: Lox) -> None:
    """Read one line at a time; globals persist between lines."""
    while True:
        line = session.io.read_input("> ")
        if line is None or line.strip() == "exit":
            break
        if not line.strip():
            continue
        session.run(line)


def run_file(session: Lox, path: str) -> int:
    try:
        with open(path, "r", encoding="utf-8") as f:
            source = f.read()
    except OSError as e:
        session.io.error(f"Could not read '{path}': {e.strerror}")
        return EXIT_NO_INPUT

    outcome = session.run(source)
    if outcome.had_error:
        return EXIT_STATIC_ERROR
    if outcome.had_runtime_error:
        return EXIT_RUNTIME_ERROR
    return 0


def print_ast(io: IOHandler, path: str) -> int:
    try:
        with open(path, "r", encoding="utf-8") as f:
            source = f.read()
    except OSError as e:
        io.error(f"Could not read '{path}': {e.strerror}")
        return EXIT_NO_INPUT

    scanned = scan(source)
    parsed = parse(scanned.tokens)
    errors = scanned.errors + parsed.errors
    for diagnostic in sorted(errors, key=lambda d: d.line):
        io.error(str(diagnostic))
    if errors:
        return EXIT_STATIC_ERROR
    try:
        rendered = AstPrinter().render_program(parsed.statements)
    except RecursionError:
        io.error(NESTING_TOO_DEEP)
        return EXIT_STATIC_ERROR
    io.emit(rendered)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Lox tree-walking interpreter")
    parser.add_argument("script", nargs="?", help="Path to the Lox script")
    parser.add_argument(
        "--ast", action="store_true", help="Print the parsed program instead of running it"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log pipeline stages to stderr"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    io = ConsoleIO()
    if args.ast:
        if not args.script:
            parser.error("--ast requires a script")
        return print_ast(io, args.script)

    session = Lox(io_handler=io, config=RuntimeConfig.from_env())
    if not args.script:
        run_repl(session)
        return 0

    logger.debug("Running %s", args.script)
    return run_file(session, args.script)


if __name__ == "__main__":
    sys.exit(main())
