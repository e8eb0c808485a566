"""PLC Java backend — renders a checked Source as a Java `Main` class.

The translation is structural: every node maps to the Java construct with the
same shape, and names and types come from the slots the checker filled in.
"""

from __future__ import annotations

import logging

from .ast import (
    Access,
    Assignment,
    Binary,
    BooleanLiteral,
    Call,
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
    Stmt,
    StringLiteral,
    Switch,
    While,
)
from .check import CheckedSource
from .scope import Type
from .stack import call_deep

logger = logging.getLogger(__name__)

JVM_TYPES: dict[Type, str] = {
    Type.ANY: "Object",
    Type.BOOLEAN: "boolean",
    Type.CHARACTER: "char",
    Type.DECIMAL: "double",
    Type.INTEGER: "int",
    Type.STRING: "String",
    Type.COMPARABLE: "Comparable",
    Type.NIL: "Void",
}


def emit_java(checked: CheckedSource) -> str:
    """Render a checked program as Java source text."""
    if not isinstance(checked, CheckedSource):
        raise TypeError("emit_java() takes a CheckedSource; call check() first")
    text = call_deep(lambda: _Emitter().emit_source(checked))
    logger.debug("emitted %d lines of Java", text.count("\n"))
    return text


class _Emitter:
    _INDENT: str = "    "

    # Java precedence of each operator (higher binds tighter)
    _PREC_OR: int = 1
    _PREC_AND: int = 2
    _PREC_EQUALITY: int = 3
    _PREC_RELATIONAL: int = 4
    _PREC_SUM: int = 5
    _PREC_PRODUCT: int = 6
    _PREC_PRIMARY: int = 7

    _BIN_PREC: dict[str, int] = {
        "||": _PREC_OR,
        "&&": _PREC_AND,
        "==": _PREC_EQUALITY,
        "!=": _PREC_EQUALITY,
        "<": _PREC_RELATIONAL,
        ">": _PREC_RELATIONAL,
        "+": _PREC_SUM,
        "-": _PREC_SUM,
        "*": _PREC_PRODUCT,
        "/": _PREC_PRODUCT,
    }

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._indent_level: int = 0

    # ── Public ──────────────────────────────────────────────

    def emit_source(self, checked: CheckedSource) -> str:
        source = checked.source
        self._lines = []
        self._indent_level = 0
        self._emit_line("public class Main {")
        self._lines.append("")
        self._indent_level += 1
        if source.globals:
            for decl in source.globals:
                self._emit_global(decl)
            self._lines.append("")
        self._emit_line("public static void main(String[] args) {")
        self._indent_level += 1
        self._emit_line("System.exit(new Main().main());")
        self._indent_level -= 1
        self._emit_line("}")
        for fn in source.functions:
            self._lines.append("")
            self._emit_function(fn)
        self._indent_level -= 1
        self._lines.append("")
        self._emit_line("}")
        return "\n".join(self._lines) + "\n"

    # ── Lines / Blocks ──────────────────────────────────────

    def _emit_line(self, line: str) -> None:
        self._lines.append(self._INDENT * self._indent_level + line)

    def _emit_stmt_block(self, stmts: list[Stmt]) -> None:
        self._indent_level += 1
        for stmt in stmts:
            self._emit_stmt(stmt)
        self._indent_level -= 1

    def _emit_braced(self, header: str, stmts: list[Stmt]) -> None:
        if not stmts:
            self._emit_line(header + " {}")
            return
        self._emit_line(header + " {")
        self._emit_stmt_block(stmts)
        self._emit_line("}")

    # ── Decls ───────────────────────────────────────────────

    def _emit_global(self, decl: Global) -> None:
        assert decl.variable is not None
        line = self._render_declared(decl.variable.type, decl.variable.target_name, decl.value)
        if not decl.mutable:
            line = "final " + line
        self._emit_line(line + ";")

    def _emit_function(self, fn: Function) -> None:
        assert fn.function is not None
        params: list[str] = []
        for name, typ in zip(fn.parameters, fn.function.parameter_types):
            params.append(JVM_TYPES[typ] + " " + name)
        header = (
            JVM_TYPES[fn.function.return_type]
            + " "
            + fn.function.target_name
            + "("
            + ", ".join(params)
            + ")"
        )
        self._emit_braced(header, fn.statements)

    # ── Stmts ───────────────────────────────────────────────

    def _emit_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, ExpressionStmt):
            self._emit_line(self._render_expr(stmt.expression) + ";")
            return
        if isinstance(stmt, Declaration):
            assert stmt.variable is not None
            self._emit_line(
                self._render_declared(stmt.variable.type, stmt.variable.target_name, stmt.value)
                + ";"
            )
            return
        if isinstance(stmt, Assignment):
            self._emit_line(
                self._render_expr(stmt.receiver) + " = " + self._render_expr(stmt.value) + ";"
            )
            return
        if isinstance(stmt, If):
            self._emit_line("if (" + self._render_expr(stmt.condition) + ") {")
            self._emit_stmt_block(stmt.then_statements)
            if stmt.else_statements:
                self._emit_line("} else {")
                self._emit_stmt_block(stmt.else_statements)
            self._emit_line("}")
            return
        if isinstance(stmt, Switch):
            self._emit_switch(stmt)
            return
        if isinstance(stmt, While):
            self._emit_braced("while (" + self._render_expr(stmt.condition) + ")", stmt.statements)
            return
        if isinstance(stmt, Return):
            if stmt.value is None:
                self._emit_line("return;")
            else:
                self._emit_line("return " + self._render_expr(stmt.value) + ";")
            return
        raise TypeError("unhandled stmt type: " + type(stmt).__name__)

    def _emit_switch(self, stmt: Switch) -> None:
        self._emit_line("switch (" + self._render_expr(stmt.condition) + ") {")
        self._indent_level += 1
        for case in stmt.cases:
            if case.value is None:
                self._emit_line("default:")
                self._emit_stmt_block(case.statements)
            else:
                self._emit_line("case " + self._render_expr(case.value) + ":")
                self._indent_level += 1
                for inner in case.statements:
                    self._emit_stmt(inner)
                self._emit_line("break;")
                self._indent_level -= 1
        self._indent_level -= 1
        self._emit_line("}")

    def _render_declared(self, typ: Type, name: str, value: Expr | None) -> str:
        """`T name = value`, with list initializers declared as arrays."""
        jvm = JVM_TYPES[typ]
        if isinstance(value, ListLiteral):
            jvm += "[]"
        if value is None:
            return jvm + " " + name
        return jvm + " " + name + " = " + self._render_expr(value)

    # ── Exprs ───────────────────────────────────────────────

    def _render_expr(self, expr: Expr) -> str:
        if isinstance(expr, NilLiteral):
            return "null"
        if isinstance(expr, BooleanLiteral):
            return "true" if expr.value else "false"
        if isinstance(expr, IntegerLiteral):
            return str(expr.value)
        if isinstance(expr, DecimalLiteral):
            return format(expr.value, "f")
        if isinstance(expr, CharacterLiteral):
            return "'" + self._escape_text(expr.value, quote="'") + "'"
        if isinstance(expr, StringLiteral):
            return '"' + self._escape_text(expr.value, quote='"') + '"'
        if isinstance(expr, Group):
            return "(" + self._render_expr(expr.expression) + ")"
        if isinstance(expr, Binary):
            return self._render_binary(expr)
        if isinstance(expr, Access):
            assert expr.variable is not None
            if expr.index is None:
                return expr.variable.target_name
            return expr.variable.target_name + "[" + self._render_expr(expr.index) + "]"
        if isinstance(expr, Call):
            assert expr.function is not None
            args = ", ".join(self._render_expr(a) for a in expr.arguments)
            return expr.function.target_name + "(" + args + ")"
        if isinstance(expr, ListLiteral):
            return "{" + ", ".join(self._render_expr(v) for v in expr.values) + "}"
        raise TypeError("unhandled expr type: " + type(expr).__name__)

    def _render_binary(self, expr: Binary) -> str:
        if expr.operator == "^":
            return (
                "Math.pow("
                + self._render_expr(expr.left)
                + ", "
                + self._render_expr(expr.right)
                + ")"
            )
        prec = self._BIN_PREC[expr.operator]
        left = self._render_operand(expr.left, prec, right_side=False)
        right = self._render_operand(expr.right, prec, right_side=True)
        return left + " " + expr.operator + " " + right

    def _render_operand(self, expr: Expr, parent_prec: int, right_side: bool) -> str:
        text = self._render_expr(expr)
        if not isinstance(expr, Binary) or expr.operator == "^":
            return text
        prec = self._BIN_PREC[expr.operator]
        if prec < parent_prec or (right_side and prec == parent_prec):
            return "(" + text + ")"
        return text

    def _escape_text(self, s: str, quote: str) -> str:
        out = ""
        for ch in s:
            if ch == "\n":
                out += "\\n"
            elif ch == "\r":
                out += "\\r"
            elif ch == "\t":
                out += "\\t"
            elif ch == "\b":
                out += "\\b"
            elif ch == "\\":
                out += "\\\\"
            elif ch == quote:
                out += "\\" + quote
            else:
                out += ch
        return out
