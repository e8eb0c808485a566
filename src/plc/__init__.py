"""PLC lexer, parser, checker, interpreter and Java backend — public API."""

from __future__ import annotations

from .ast import Source
from .check import CheckedSource, check as check_source
from .emit import emit_java as emit_java
from .errors import (
    CheckError as CheckError,
    LexError as LexError,
    ParseError as ParseError,
    PlcError as PlcError,
    RuntimeFault as RuntimeFault,
)
from .parse import parse as parse
from .runtime import RunResult as RunResult, run as run
from .tokens import Token as Token, tokenize as tokenize


def check(source: str | Source) -> CheckedSource:
    """Parse (when given text) and check a program."""
    if isinstance(source, str):
        source = parse(source)
    return check_source(source)


def evaluate(text: str) -> RunResult:
    """Lex, parse, check and run program text in one step."""
    return run(check(text))
