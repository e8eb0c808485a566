"""PLC runtime — tree-walking interpreter over a checked Source."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, Context, Decimal
from fractions import Fraction
from typing import TextIO

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
from .check import CheckedSource, builtin_print
from .errors import RuntimeFault
from .scope import Function as FunctionSymbol, Scope, Variable
from .stack import call_deep
from .values import (
    FALSE,
    NIL,
    TRUE,
    Value,
    VBool,
    VChar,
    VDecimal,
    VInt,
    VList,
    VString,
    boolean,
    int_text,
)

logger = logging.getLogger(__name__)

# Enough digits that +, - and * on decimals never round
_EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)

ORDERED_VALUES: tuple[type, ...] = (VInt, VDecimal, VChar, VString)


@dataclass
class RunResult:
    value: Value
    stdout: str


@dataclass(frozen=True)
class _Return:
    """Produced by RETURN and consumed by the enclosing call."""

    value: Value


# ============================================================
# Arithmetic
# ============================================================


def _int_div_trunc(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        return -q
    return q


def _decimal_div(a: Decimal, b: Decimal) -> Decimal:
    """a / b rounded half-to-even at the scale of a."""
    exponent = a.as_tuple().exponent
    assert isinstance(exponent, int)
    scaled = Fraction(a) / Fraction(b) / Fraction(10) ** exponent
    return Decimal(round(scaled)).scaleb(exponent, _EXACT)


# ============================================================
# Interpreter
# ============================================================


class Interpreter:
    """Executes statements and evaluates expressions against an explicit scope."""

    def __init__(self, out: TextIO):
        self.out: TextIO = out
        self.root: Scope = Scope(None)
        self.root.define_function(builtin_print(self.print_value))

    def print_value(self, args: list[Value]) -> Value:
        self.out.write(args[0].to_string() + "\n")
        return NIL

    def fault(self, msg: str, node: Expr | Stmt | None = None) -> RuntimeFault:
        return RuntimeFault(msg, None if node is None else node.offset)

    # ── Top Level ────────────────────────────────────────────

    def run_source(self, source: Source) -> Value:
        for decl in source.globals:
            assert decl.variable is not None
            value = NIL
            if decl.value is not None:
                value = self.eval_expr(decl.value, self.root)
            self.root.define_variable(
                Variable(decl.name, decl.variable.target_name, decl.variable.type, decl.mutable, value)
            )
        for fn in source.functions:
            self.root.define_function(self.bind_function(fn, self.root))
        main = self.root.lookup_function("main", 0)
        if main is None:
            raise self.fault("no main/0 function")
        return main.invoke([])

    def bind_function(self, fn: Function, defining: Scope) -> FunctionSymbol:
        assert fn.function is not None
        signature = fn.function

        def invoke(args: list[Value]) -> Value:
            scope = Scope(defining)
            for name, typ, arg in zip(fn.parameters, signature.parameter_types, args):
                scope.define_variable(Variable(name, name, typ, True, arg))
            signal = self.exec_statements(fn.statements, scope)
            if signal is None:
                return NIL
            return signal.value

        return FunctionSymbol(
            fn.name, signature.target_name, signature.parameter_types, signature.return_type, invoke
        )

    # ── Statements ───────────────────────────────────────────

    def exec_statements(self, statements: list[Stmt], scope: Scope) -> _Return | None:
        for stmt in statements:
            signal = self.exec_stmt(stmt, scope)
            if signal is not None:
                return signal
        return None

    def exec_stmt(self, stmt: Stmt, scope: Scope) -> _Return | None:
        if isinstance(stmt, ExpressionStmt):
            self.eval_expr(stmt.expression, scope)
            return None
        if isinstance(stmt, Declaration):
            assert stmt.variable is not None
            value = NIL
            if stmt.value is not None:
                value = self.eval_expr(stmt.value, scope)
            scope.define_variable(Variable(stmt.name, stmt.name, stmt.variable.type, True, value))
            return None
        if isinstance(stmt, Assignment):
            self.exec_assignment(stmt, scope)
            return None
        if isinstance(stmt, If):
            if self.eval_condition(stmt.condition, scope):
                return self.exec_statements(stmt.then_statements, Scope(scope))
            return self.exec_statements(stmt.else_statements, Scope(scope))
        if isinstance(stmt, Switch):
            condition = self.eval_expr(stmt.condition, scope)
            for case in stmt.cases:
                if case.value is None or self.eval_expr(case.value, scope) == condition:
                    return self.exec_statements(case.statements, Scope(scope))
            return None
        if isinstance(stmt, While):
            while self.eval_condition(stmt.condition, scope):
                signal = self.exec_statements(stmt.statements, Scope(scope))
                if signal is not None:
                    return signal
            return None
        if isinstance(stmt, Return):
            if stmt.value is None:
                return _Return(NIL)
            return _Return(self.eval_expr(stmt.value, scope))
        raise self.fault("unknown statement: " + type(stmt).__name__, stmt)

    def exec_assignment(self, stmt: Assignment, scope: Scope) -> None:
        receiver = stmt.receiver
        if not isinstance(receiver, Access):
            raise self.fault("cannot assign to this expression", stmt)
        variable = self.lookup_variable(receiver, scope)
        if not variable.mutable:
            raise self.fault("cannot assign to immutable '" + receiver.name + "'", stmt)
        if receiver.index is None:
            variable.value = self.eval_expr(stmt.value, scope)
            return
        elements = self.list_of(variable, receiver)
        index = self.index_of(receiver.index, len(elements), scope)
        elements[index] = self.eval_expr(stmt.value, scope)

    def eval_condition(self, expr: Expr, scope: Scope) -> bool:
        value = self.eval_expr(expr, scope)
        if not isinstance(value, VBool):
            raise self.fault("condition must be Boolean, got " + value.type_name(), expr)
        return value.value

    # ── Expressions ──────────────────────────────────────────

    def eval_expr(self, expr: Expr, scope: Scope) -> Value:
        if isinstance(expr, NilLiteral):
            return NIL
        if isinstance(expr, BooleanLiteral):
            return boolean(expr.value)
        if isinstance(expr, IntegerLiteral):
            return VInt(expr.value)
        if isinstance(expr, DecimalLiteral):
            return VDecimal(expr.value)
        if isinstance(expr, CharacterLiteral):
            return VChar(expr.value)
        if isinstance(expr, StringLiteral):
            return VString(expr.value)
        if isinstance(expr, Group):
            return self.eval_expr(expr.expression, scope)
        if isinstance(expr, Binary):
            return self.eval_binary(expr, scope)
        if isinstance(expr, Access):
            variable = self.lookup_variable(expr, scope)
            if expr.index is None:
                return variable.value
            elements = self.list_of(variable, expr)
            return elements[self.index_of(expr.index, len(elements), scope)]
        if isinstance(expr, Call):
            function = scope.lookup_function(expr.name, len(expr.arguments))
            if function is None:
                raise self.fault(
                    "undefined function '" + expr.name + "/" + str(len(expr.arguments)) + "'",
                    expr,
                )
            args: list[Value] = []
            for arg in expr.arguments:
                args.append(self.eval_expr(arg, scope))
            return function.invoke(args)
        if isinstance(expr, ListLiteral):
            return VList([self.eval_expr(v, scope) for v in expr.values])
        raise self.fault("unknown expression: " + type(expr).__name__, expr)

    def eval_binary(self, expr: Binary, scope: Scope) -> Value:
        op = expr.operator
        if op == "&&" or op == "||":
            left_flag = self.eval_condition(expr.left, scope)
            if op == "&&" and not left_flag:
                return FALSE
            if op == "||" and left_flag:
                return TRUE
            return boolean(self.eval_condition(expr.right, scope))
        left = self.eval_expr(expr.left, scope)
        right = self.eval_expr(expr.right, scope)
        if op == "==":
            return boolean(left == right)
        if op == "!=":
            return boolean(left != right)
        if op == "<" or op == ">":
            if type(left) is not type(right) or not isinstance(left, ORDERED_VALUES):
                raise self.fault(
                    "cannot compare " + left.type_name() + " with " + right.type_name(), expr
                )
            if op == "<":
                return boolean(left.value < right.value)  # type: ignore[attr-defined]
            return boolean(left.value > right.value)  # type: ignore[attr-defined]
        if op == "+" and (isinstance(left, VString) or isinstance(right, VString)):
            return VString(left.to_string() + right.to_string())
        if op == "^":
            if not isinstance(left, VInt) or not isinstance(right, VInt):
                raise self.fault("'^' needs Integer operands", expr)
            if right.value < 0:
                raise self.fault("negative exponent " + int_text(right.value), expr)
            return VInt(left.value**right.value)
        if isinstance(left, VInt) and isinstance(right, VInt):
            return VInt(self.int_arith(op, left.value, right.value, expr))
        if isinstance(left, VDecimal) and isinstance(right, VDecimal):
            return VDecimal(self.decimal_arith(op, left.value, right.value, expr))
        raise self.fault(
            "'" + op + "' cannot combine " + left.type_name() + " and " + right.type_name(), expr
        )

    def int_arith(self, op: str, a: int, b: int, expr: Binary) -> int:
        if op == "+":
            return a + b
        if op == "-":
            return a - b
        if op == "*":
            return a * b
        if op == "/":
            if b == 0:
                raise self.fault("division by zero", expr)
            return _int_div_trunc(a, b)
        raise self.fault("unknown operator '" + op + "'", expr)

    def decimal_arith(self, op: str, a: Decimal, b: Decimal, expr: Binary) -> Decimal:
        if op == "+":
            return _EXACT.add(a, b)
        if op == "-":
            return _EXACT.subtract(a, b)
        if op == "*":
            return _EXACT.multiply(a, b)
        if op == "/":
            if b.is_zero():
                raise self.fault("division by zero", expr)
            return _decimal_div(a, b)
        raise self.fault("unknown operator '" + op + "'", expr)

    # ── Helpers ──────────────────────────────────────────────

    def lookup_variable(self, access: Access, scope: Scope) -> Variable:
        variable = scope.lookup_variable(access.name)
        if variable is None:
            raise self.fault("undefined variable '" + access.name + "'", access)
        return variable

    def list_of(self, variable: Variable, access: Access) -> list[Value]:
        if not isinstance(variable.value, VList):
            raise self.fault(
                "cannot index " + variable.value.type_name() + " '" + access.name + "'", access
            )
        return variable.value.elements

    def index_of(self, expr: Expr, length: int, scope: Scope) -> int:
        value = self.eval_expr(expr, scope)
        if not isinstance(value, VInt):
            raise self.fault("list index must be Integer, got " + value.type_name(), expr)
        if value.value < 0 or value.value >= length:
            raise self.fault(
                "index " + int_text(value.value) + " out of bounds for length " + str(length),
                expr,
            )
        return value.value


def run(checked: CheckedSource, *, out: TextIO | None = None) -> RunResult:
    """Execute a checked program and return main's result.

    Printed lines go to out when given; otherwise they are collected and
    returned in RunResult.stdout.
    """
    if not isinstance(checked, CheckedSource):
        raise TypeError("run() takes a CheckedSource; call check() first")
    buffer = io.StringIO()
    interp = Interpreter(buffer if out is None else out)
    try:
        value = call_deep(lambda: interp.run_source(checked.source))
    except RecursionError:
        raise RuntimeFault("maximum call depth exceeded") from None
    logger.debug("main returned %s", value.to_string())
    return RunResult(value, buffer.getvalue())
