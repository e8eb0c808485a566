"""Tests for the tokenizer and the character stream behind it."""

import pytest

from plc.errors import LexError
from plc.tokens import (
    TK_CHARACTER,
    TK_DECIMAL,
    TK_IDENTIFIER,
    TK_INTEGER,
    TK_OPERATOR,
    TK_STRING,
    Lexer,
    Token,
    _CharStream,
    tokenize,
    unescape,
)


def test_offsets_point_at_first_character():
    tokens = tokenize("LET x = 10;")
    assert [tok.offset for tok in tokens] == [0, 4, 6, 8, 10]


def test_whitespace_kinds_are_discarded():
    tokens = tokenize("a\b\tb\r\nc")
    assert [tok.text for tok in tokens] == ["a", "b", "c"]
    assert [tok.offset for tok in tokens] == [0, 3, 6]


def test_token_kinds():
    tokens = tokenize("name 1 1.5 'c' \"s\" +")
    assert [tok.kind for tok in tokens] == [
        TK_IDENTIFIER,
        TK_INTEGER,
        TK_DECIMAL,
        TK_CHARACTER,
        TK_STRING,
        TK_OPERATOR,
    ]


@pytest.mark.parametrize(
    "text,kind",
    [("1", TK_INTEGER), ("1.5", TK_DECIMAL), ("-0", TK_INTEGER), ("-3.25", TK_DECIMAL)],
)
def test_number_lexeme_is_whole_input(text, kind):
    assert tokenize(text) == [Token(kind, text, 0)]


@pytest.mark.parametrize("text", ["01", "1.", "-01", "1.x"])
def test_malformed_numbers(text):
    with pytest.raises(LexError):
        tokenize(text)


def test_lex_error_carries_offset():
    with pytest.raises(LexError) as info:
        tokenize('x = "abc')
    assert info.value.offset == 8
    assert info.value.msg == "unterminated string literal"
    assert str(info.value) == "unterminated string literal at offset 8"


def test_double_operators_are_greedy():
    assert [tok.text for tok in tokenize("a==b")] == ["a", "==", "b"]
    assert [tok.text for tok in tokenize("!=!")] == ["!=", "!"]


def test_token_repr():
    assert repr(Token(TK_INTEGER, "1", 3)) == "Token(INTEGER, '1', 3)"


def test_unescape():
    assert unescape("a\\nb") == "a\nb"
    assert unescape("\\'\\\"\\\\") == "'\"\\"
    assert unescape("\\b\\r\\t") == "\b\r\t"


def test_char_stream_emit_resets_window():
    chars = _CharStream("abc")
    chars.advance()
    chars.advance()
    tok = chars.emit(TK_IDENTIFIER)
    assert tok == Token(TK_IDENTIFIER, "ab", 0)
    assert chars.length == 0
    chars.advance()
    assert chars.emit(TK_IDENTIFIER) == Token(TK_IDENTIFIER, "c", 2)


def test_peek_does_not_consume():
    lexer = Lexer("-1")
    assert lexer.peek("-", "0123456789")
    assert lexer.chars.index == 0
    assert not lexer.peek("-", "-")
    assert lexer.match("-")
    assert lexer.chars.index == 1


def test_peek_past_end_is_false():
    lexer = Lexer("a")
    assert not lexer.peek("a", "b")
