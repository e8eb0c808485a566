"""PLC parser — recursive descent, one method per grammar production."""

from __future__ import annotations

import logging
from decimal import Decimal

from .ast import (
    Access,
    Assignment,
    Binary,
    BooleanLiteral,
    Call,
    Case,
    CharacterLiteral,
    DecimalLiteral,
    Declaration,
    Expr,
    ExpressionStmt,
    Function,
    Global,
    Group,
    If,
    IntegerLiteral,
    ListLiteral,
    NilLiteral,
    Return,
    Source,
    Stmt,
    StringLiteral,
    Switch,
    While,
)
from .errors import ParseError
from .stack import call_deep
from .tokens import (
    TK_CHARACTER,
    TK_DECIMAL,
    TK_EOF,
    TK_IDENTIFIER,
    TK_INTEGER,
    TK_STRING,
    Token,
    tokenize,
    unescape,
)

logger = logging.getLogger(__name__)

KEYWORDS: set[str] = {
    "LIST",
    "VAR",
    "VAL",
    "FUN",
    "DO",
    "END",
    "LET",
    "SWITCH",
    "CASE",
    "DEFAULT",
    "IF",
    "ELSE",
    "WHILE",
    "RETURN",
    "NIL",
    "TRUE",
    "FALSE",
}

GLOBAL_KEYWORDS: set[str] = {"LIST", "VAR", "VAL"}

LOGICAL_OPS: set[str] = {"&&", "||"}
COMPARE_OPS: set[str] = {"<", ">", "==", "!="}
ADDITIVE_OPS: set[str] = {"+", "-"}
MULTIPLICATIVE_OPS: set[str] = {"*", "/", "^"}


class Parser:
    """Recursive descent parser for PLC."""

    def __init__(self, tokens: list[Token]):
        end = 0
        if tokens:
            last = tokens[len(tokens) - 1]
            end = last.offset + len(last.text)
        self.tokens: list[Token] = tokens + [Token(TK_EOF, "", end)]
        self.pos: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.kind != TK_EOF:
            self.pos += 1
        return tok

    def at(self, text: str) -> bool:
        tok = self.current()
        return tok.kind != TK_EOF and tok.text == text

    def at_any(self, texts: set[str]) -> bool:
        tok = self.current()
        return tok.kind != TK_EOF and tok.text in texts

    def at_eof(self) -> bool:
        return self.current().kind == TK_EOF

    def at_name(self) -> bool:
        tok = self.current()
        return tok.kind == TK_IDENTIFIER and tok.text not in KEYWORDS

    def expect(self, text: str) -> Token:
        if not self.at(text):
            raise self.error("expected '" + text + "', got " + self.describe())
        return self.advance()

    def expect_name(self, what: str = "identifier") -> Token:
        if not self.at_name():
            raise self.error("expected " + what + ", got " + self.describe())
        return self.advance()

    def describe(self) -> str:
        tok = self.current()
        if tok.kind == TK_EOF:
            return "end of input"
        return "'" + tok.text + "'"

    def error(self, msg: str) -> ParseError:
        return ParseError(msg, self.current().offset)

    # ── Top Level ────────────────────────────────────────────

    def parse_source(self) -> Source:
        """Source = Global* Function*"""
        globals_: list[Global] = []
        while self.at_any(GLOBAL_KEYWORDS):
            globals_.append(self.parse_global())
        functions: list[Function] = []
        while self.at("FUN"):
            functions.append(self.parse_function())
        if self.at_any(GLOBAL_KEYWORDS):
            raise self.error("globals must be declared before functions")
        if not self.at_eof():
            raise self.error("expected global or function, got " + self.describe())
        return Source(globals_, functions)

    def parse_global(self) -> Global:
        """Global = ( List | Mutable | Immutable ) ';'"""
        if self.at("LIST"):
            decl = self.parse_list()
        elif self.at("VAR"):
            decl = self.parse_mutable()
        else:
            decl = self.parse_immutable()
        self.expect(";")
        return decl

    def parse_list(self) -> Global:
        """List = 'LIST' name ':' Type '=' '[' Expr ( ',' Expr )* ']'"""
        offset = self.expect("LIST").offset
        name = self.expect_name().text
        self.expect(":")
        type_name = self.expect_name("type name").text
        self.expect("=")
        list_offset = self.expect("[").offset
        values: list[Expr] = [self.parse_expr()]
        while self.at(","):
            self.advance()
            values.append(self.parse_expr())
        self.expect("]")
        return Global(offset, name, type_name, True, ListLiteral(list_offset, values))

    def parse_mutable(self) -> Global:
        """Mutable = 'VAR' name ':' Type ( '=' Expr )?"""
        offset = self.expect("VAR").offset
        name = self.expect_name().text
        self.expect(":")
        type_name = self.expect_name("type name").text
        value: Expr | None = None
        if self.at("="):
            self.advance()
            value = self.parse_expr()
        return Global(offset, name, type_name, True, value)

    def parse_immutable(self) -> Global:
        """Immutable = 'VAL' name ':' Type '=' Expr"""
        offset = self.expect("VAL").offset
        name = self.expect_name().text
        self.expect(":")
        type_name = self.expect_name("type name").text
        self.expect("=")
        return Global(offset, name, type_name, False, self.parse_expr())

    def parse_function(self) -> Function:
        """Function = 'FUN' name '(' Params? ')' ( ':' Type )? 'DO' Block 'END'"""
        offset = self.expect("FUN").offset
        name = self.expect_name().text
        self.expect("(")
        parameters: list[str] = []
        type_names: list[str] = []
        if not self.at(")"):
            self.parse_parameter(parameters, type_names)
            while self.at(","):
                self.advance()
                self.parse_parameter(parameters, type_names)
        self.expect(")")
        return_type_name: str | None = None
        if self.at(":"):
            self.advance()
            return_type_name = self.expect_name("type name").text
        self.expect("DO")
        statements = self.parse_block({"END"})
        self.expect("END")
        return Function(offset, name, parameters, type_names, return_type_name, statements)

    def parse_parameter(self, names: list[str], type_names: list[str]) -> None:
        names.append(self.expect_name().text)
        self.expect(":")
        type_names.append(self.expect_name("type name").text)

    def parse_block(self, terminators: set[str]) -> list[Stmt]:
        """Block = Statement* (up to one of the terminating keywords)"""
        statements: list[Stmt] = []
        while not self.at_any(terminators):
            statements.append(self.parse_statement())
        return statements

    # ── Statements ───────────────────────────────────────────

    def parse_statement(self) -> Stmt:
        if self.at("LET"):
            return self.parse_declaration()
        if self.at("SWITCH"):
            return self.parse_switch()
        if self.at("IF"):
            return self.parse_if()
        if self.at("WHILE"):
            return self.parse_while()
        if self.at("RETURN"):
            return self.parse_return()
        return self.parse_expression_or_assignment()

    def parse_declaration(self) -> Declaration:
        """Declaration = 'LET' name ( ':' Type )? ( '=' Expr )? ';'"""
        offset = self.expect("LET").offset
        name = self.expect_name().text
        type_name: str | None = None
        if self.at(":"):
            self.advance()
            type_name = self.expect_name("type name").text
        value: Expr | None = None
        if self.at("="):
            self.advance()
            value = self.parse_expr()
        self.expect(";")
        return Declaration(offset, name, type_name, value)

    def parse_switch(self) -> Switch:
        """Switch = 'SWITCH' Expr ( 'CASE' Expr ':' Block )* ( 'DEFAULT' Block )? 'END'"""
        offset = self.expect("SWITCH").offset
        condition = self.parse_expr()
        cases: list[Case] = []
        while self.at("CASE"):
            case_offset = self.advance().offset
            value = self.parse_expr()
            self.expect(":")
            cases.append(Case(case_offset, value, self.parse_block({"CASE", "DEFAULT", "END"})))
        if self.at("DEFAULT"):
            case_offset = self.advance().offset
            cases.append(Case(case_offset, None, self.parse_block({"END"})))
        self.expect("END")
        return Switch(offset, condition, cases)

    def parse_if(self) -> If:
        """If = 'IF' Expr 'DO' Block ( 'ELSE' Block )? 'END'"""
        offset = self.expect("IF").offset
        condition = self.parse_expr()
        self.expect("DO")
        then_statements = self.parse_block({"ELSE", "END"})
        else_statements: list[Stmt] = []
        if self.at("ELSE"):
            self.advance()
            else_statements = self.parse_block({"END"})
        self.expect("END")
        return If(offset, condition, then_statements, else_statements)

    def parse_while(self) -> While:
        """While = 'WHILE' Expr 'DO' Block 'END'"""
        offset = self.expect("WHILE").offset
        condition = self.parse_expr()
        self.expect("DO")
        statements = self.parse_block({"END"})
        self.expect("END")
        return While(offset, condition, statements)

    def parse_return(self) -> Return:
        offset = self.expect("RETURN").offset
        value: Expr | None = None
        if not self.at(";"):
            value = self.parse_expr()
        self.expect(";")
        return Return(offset, value)

    def parse_expression_or_assignment(self) -> Stmt:
        """Expr ( '=' Expr )? ';'"""
        offset = self.current().offset
        expression = self.parse_expr()
        if self.at("="):
            self.advance()
            value = self.parse_expr()
            self.expect(";")
            return Assignment(offset, expression, value)
        self.expect(";")
        return ExpressionStmt(offset, expression)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_logical()

    def parse_logical(self) -> Expr:
        """Logical = Comparison ( ( '&&' | '||' ) Comparison )*"""
        left = self.parse_comparison()
        while self.at_any(LOGICAL_OPS):
            op = self.advance().text
            left = Binary(left.offset, op, left, self.parse_comparison())
        return left

    def parse_comparison(self) -> Expr:
        """Comparison = Additive ( ( '<' | '>' | '==' | '!=' ) Additive )*"""
        left = self.parse_additive()
        while self.at_any(COMPARE_OPS):
            op = self.advance().text
            left = Binary(left.offset, op, left, self.parse_additive())
        return left

    def parse_additive(self) -> Expr:
        """Additive = Multiplicative ( ( '+' | '-' ) Multiplicative )*"""
        left = self.parse_multiplicative()
        while self.at_any(ADDITIVE_OPS):
            op = self.advance().text
            left = Binary(left.offset, op, left, self.parse_multiplicative())
        return left

    def parse_multiplicative(self) -> Expr:
        """Multiplicative = Primary ( ( '*' | '/' | '^' ) Primary )*"""
        left = self.parse_primary()
        while self.at_any(MULTIPLICATIVE_OPS):
            op = self.advance().text
            left = Binary(left.offset, op, left, self.parse_primary())
        return left

    def parse_primary(self) -> Expr:
        tok = self.current()
        if self.at("NIL"):
            self.advance()
            return NilLiteral(tok.offset)
        if self.at("TRUE") or self.at("FALSE"):
            self.advance()
            return BooleanLiteral(tok.offset, tok.text == "TRUE")
        if tok.kind == TK_INTEGER:
            self.advance()
            # int() caps the digits it will parse; Decimal does not
            return IntegerLiteral(tok.offset, int(Decimal(tok.text)))
        if tok.kind == TK_DECIMAL:
            self.advance()
            return DecimalLiteral(tok.offset, Decimal(tok.text))
        if tok.kind == TK_CHARACTER:
            self.advance()
            return CharacterLiteral(tok.offset, unescape(tok.text[1:-1]))
        if tok.kind == TK_STRING:
            self.advance()
            return StringLiteral(tok.offset, unescape(tok.text[1:-1]))
        if self.at("("):
            self.advance()
            inner = self.parse_expr()
            self.expect(")")
            return Group(tok.offset, inner)
        if self.at("["):
            self.advance()
            return ListLiteral(tok.offset, self.parse_expr_list("]"))
        if self.at_name():
            self.advance()
            if self.at("("):
                self.advance()
                return Call(tok.offset, tok.text, self.parse_expr_list(")"))
            if self.at("["):
                self.advance()
                index = self.parse_expr()
                self.expect("]")
                return Access(tok.offset, tok.text, index)
            return Access(tok.offset, tok.text, None)
        raise self.error("expected expression, got " + self.describe())

    def parse_expr_list(self, close: str) -> list[Expr]:
        """( Expr ( ',' Expr )* )? close -- the opening bracket is already consumed."""
        exprs: list[Expr] = []
        if not self.at(close):
            exprs.append(self.parse_expr())
            while self.at(","):
                self.advance()
                exprs.append(self.parse_expr())
        self.expect(close)
        return exprs


def parse_tokens(tokens: list[Token]) -> Source:
    parser = Parser(tokens)
    try:
        source = call_deep(parser.parse_source)
    except RecursionError:
        raise parser.error("program is nested too deeply") from None
    logger.debug(
        "parsed %d globals, %d functions", len(source.globals), len(source.functions)
    )
    return source


def parse(text: str) -> Source:
    """Lex and parse source text. Raises LexError or ParseError."""
    return parse_tokens(tokenize(text))
