"""PLC tokenizer — lexes source into a flat token list."""

from __future__ import annotations

import logging
import string

from .errors import LexError

logger = logging.getLogger(__name__)


# Token kind constants
TK_IDENTIFIER = "IDENTIFIER"
TK_INTEGER = "INTEGER"
TK_DECIMAL = "DECIMAL"
TK_CHARACTER = "CHARACTER"
TK_STRING = "STRING"
TK_OPERATOR = "OPERATOR"
TK_EOF = "EOF"

# Character classes; peek() and match() take one class per position
LETTERS: str = string.ascii_letters
DIGITS: str = string.digits
NONZERO: str = "123456789"
IDENT_REST: str = LETTERS + DIGITS + "_-"
WHITESPACE: str = " \b\n\r\t"
ESCAPES: str = "bnrt'\"\\"

# Two-character operators, matched before falling back to a single character
DOUBLE_OPS: list[str] = ["&&", "||", "==", "!="]

ESCAPE_MAP: dict[str, str] = {
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "'": "'",
    '"': '"',
    "\\": "\\",
}


class Token:
    """A single lexeme with its kind and source offset."""

    def __init__(self, kind: str, text: str, offset: int):
        self.kind: str = kind
        self.text: str = text
        self.offset: int = offset

    def __repr__(self) -> str:
        return "Token(" + self.kind + ", " + repr(self.text) + ", " + str(self.offset) + ")"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Token)
            and self.kind == other.kind
            and self.text == other.text
            and self.offset == other.offset
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.text, self.offset))


def unescape(body: str) -> str:
    """Resolve escape sequences in the body of a character or string literal."""
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            out.append(ESCAPE_MAP[body[i + 1]])
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


class _CharStream:
    """Source text plus the window of characters pending in the current token."""

    def __init__(self, source: str):
        self.source: str = source
        self.index: int = 0
        self.length: int = 0

    def has(self, offset: int) -> bool:
        return self.index + offset < len(self.source)

    def get(self, offset: int) -> str:
        return self.source[self.index + offset]

    def advance(self) -> None:
        self.index += 1
        self.length += 1

    def skip(self) -> None:
        self.length = 0

    def emit(self, kind: str) -> Token:
        start = self.index - self.length
        self.skip()
        return Token(kind, self.source[start : self.index], start)


class Lexer:
    """Single left-to-right pass; raises LexError at the first bad character."""

    def __init__(self, source: str):
        self.chars: _CharStream = _CharStream(source)

    # ── Helpers ──────────────────────────────────────────────

    def peek(self, *classes: str) -> bool:
        """True if the next len(classes) characters fall in the given classes."""
        i = 0
        while i < len(classes):
            if not self.chars.has(i) or self.chars.get(i) not in classes[i]:
                return False
            i += 1
        return True

    def match(self, *classes: str) -> bool:
        """Like peek, but consumes the characters on success."""
        if not self.peek(*classes):
            return False
        for _ in classes:
            self.chars.advance()
        return True

    def error(self, msg: str) -> LexError:
        return LexError(msg, self.chars.index)

    # ── Tokens ───────────────────────────────────────────────

    def lex(self) -> list[Token]:
        tokens: list[Token] = []
        while self.chars.has(0):
            if self.match(WHITESPACE):
                self.chars.skip()
            else:
                tokens.append(self.lex_token())
        return tokens

    def lex_token(self) -> Token:
        if self.peek("@" + LETTERS):
            return self.lex_identifier()
        if self.peek(DIGITS) or self.peek("-", DIGITS):
            return self.lex_number()
        if self.peek("'"):
            return self.lex_character()
        if self.peek('"'):
            return self.lex_string()
        return self.lex_operator()

    def lex_identifier(self) -> Token:
        """Identifier = '@'? Letter ( Letter | Digit | '_' | '-' )*"""
        if self.match("@") and not self.match(LETTERS):
            raise self.error("expected letter after '@'")
        self.match(LETTERS)
        while self.match(IDENT_REST):
            pass
        return self.chars.emit(TK_IDENTIFIER)

    def lex_number(self) -> Token:
        """Number = '-'? ( '0' | [1-9] Digit* ) ( '.' Digit+ )?"""
        self.match("-")
        if self.match("0"):
            if self.peek(DIGITS):
                raise self.error("leading zeros are not allowed")
        else:
            self.match(NONZERO)
            while self.match(DIGITS):
                pass
        if not self.match("."):
            return self.chars.emit(TK_INTEGER)
        if not self.match(DIGITS):
            raise self.error("expected digit after decimal point")
        while self.match(DIGITS):
            pass
        return self.chars.emit(TK_DECIMAL)

    def lex_character(self) -> Token:
        self.match("'")
        if self.peek("'"):
            raise self.error("empty character literal")
        if self.peek("\\"):
            self.lex_escape()
        elif self.chars.has(0) and not self.peek("\n\r"):
            self.chars.advance()
        if not self.match("'"):
            raise self.error("unterminated character literal")
        return self.chars.emit(TK_CHARACTER)

    def lex_string(self) -> Token:
        self.match('"')
        while not self.peek('"'):
            if not self.chars.has(0) or self.peek("\n\r"):
                raise self.error("unterminated string literal")
            if self.peek("\\"):
                self.lex_escape()
            else:
                self.chars.advance()
        self.match('"')
        return self.chars.emit(TK_STRING)

    def lex_escape(self) -> None:
        self.match("\\")
        if not self.match(ESCAPES):
            raise self.error("invalid escape sequence")

    def lex_operator(self) -> Token:
        for op in DOUBLE_OPS:
            if self.match(*op):
                return self.chars.emit(TK_OPERATOR)
        self.chars.advance()
        return self.chars.emit(TK_OPERATOR)


def tokenize(source: str) -> list[Token]:
    """Lex source into tokens. Raises LexError on malformed input."""
    tokens = Lexer(source).lex()
    logger.debug("lexed %d tokens", len(tokens))
    return tokens
