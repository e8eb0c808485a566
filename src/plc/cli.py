"""PLC CLI — check and run programs, or translate them to Java."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from .check import check
from .emit import emit_java
from .errors import CheckError, LexError, ParseError, RuntimeFault
from .parse import parse_tokens
from .runtime import run
from .tokens import tokenize
from .values import VInt

PHASES: list[str] = ["lex", "parse", "check"]
TARGETS: list[str] = ["java"]

USAGE: str = """\
plc [OPTIONS] [FILE]

Run a PLC program. Reads FILE, or stdin when FILE is absent or '-'.
The exit status is main's result, masked to 0-255.

Options:
  --stop-at PHASE    Stop after PHASE (lex, parse, check); lex prints tokens
  --emit java        Print the Java translation instead of running
  -o, --output FILE  Write output to FILE instead of stdout
  --verbose          Log pipeline stages to stderr
  --help             Show this help message
"""


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(stream=sys.stderr, format="%(name)s: %(message)s")
    logging.getLogger("plc").setLevel(logging.DEBUG)


def _read_source(filepath: str) -> str | None:
    """Read UTF-8 source, reporting failures on stderr and returning None."""
    if filepath == "" or filepath == "-":
        return sys.stdin.read()
    try:
        with open(filepath, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("plc: " + filepath + ": No such file or directory", file=sys.stderr)
        return None
    except OSError as e:
        print("plc: " + filepath + ": " + str(e), file=sys.stderr)
        return None
    try:
        return raw.decode("utf-8")
    except ValueError:
        print("plc: " + filepath + ": invalid utf-8", file=sys.stderr)
        return None


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    stop_at: str = ""
    emit: str = ""
    output: str = ""
    verbose = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "--verbose":
            verbose = True
            i += 1
        elif arg in ("--stop-at", "--emit", "-o", "--output"):
            if i + 1 >= len(args):
                print("plc: " + arg + " requires a value", file=sys.stderr)
                return 2
            value = args[i + 1]
            if arg == "--stop-at":
                if value not in PHASES:
                    print("plc: unknown phase '" + value + "'", file=sys.stderr)
                    return 2
                stop_at = value
            elif arg == "--emit":
                if value not in TARGETS:
                    print("plc: unknown target '" + value + "'", file=sys.stderr)
                    return 2
                emit = value
            else:
                output = value
            i += 2
        elif arg.startswith("-") and arg != "-":
            print("plc: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print("plc: unexpected argument '" + arg + "'", file=sys.stderr)
            return 2
    if stop_at != "" and emit != "":
        print("plc: --stop-at and --emit are mutually exclusive", file=sys.stderr)
        return 2

    _configure_logging(verbose)
    text = _read_source(filepath)
    if text is None:
        return 1

    if output == "":
        return _execute(text, stop_at, emit, sys.stdout)
    try:
        with open(output, "w", encoding="utf-8") as out:
            return _execute(text, stop_at, emit, out)
    except OSError as e:
        print("plc: " + output + ": " + str(e), file=sys.stderr)
        return 1


def _execute(text: str, stop_at: str, emit: str, out: TextIO) -> int:
    try:
        tokens = tokenize(text)
    except LexError as e:
        print("plc: lex error: " + str(e), file=sys.stderr)
        return 1
    if stop_at == "lex":
        for tok in tokens:
            out.write(tok.kind + " " + tok.text + "\n")
        return 0

    try:
        source = parse_tokens(tokens)
    except ParseError as e:
        print("plc: parse error: " + str(e), file=sys.stderr)
        return 1
    if stop_at == "parse":
        return 0

    try:
        checked = check(source)
    except CheckError as e:
        print("plc: check error: " + str(e), file=sys.stderr)
        return 1
    if stop_at == "check":
        return 0
    if emit == "java":
        out.write(emit_java(checked))
        return 0

    try:
        result = run(checked, out=out)
    except RuntimeFault as e:
        print("plc: runtime error: " + str(e), file=sys.stderr)
        return 1
    out.flush()
    if not isinstance(result.value, VInt):
        print("plc: main returned " + result.value.type_name(), file=sys.stderr)
        return 1
    return result.value.value & 0xFF


if __name__ == "__main__":
    sys.exit(main())
