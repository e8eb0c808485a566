"""PLC checker — validates a parsed Source and fills its type and symbol slots."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

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
    Source,
    Stmt,
    StringLiteral,
    Switch,
    While,
)
from .errors import (
    ArityMismatchError,
    DuplicateDeclarationError,
    EmptyBlockError,
    ImmutableAssignmentError,
    InvalidExpressionError,
    LiteralRangeError,
    MissingDefaultError,
    NotAssignableError,
    TypeMismatchError,
    UnknownSymbolError,
    UnresolvedMainError,
)
from .scope import TYPE_NAMES, Function as FunctionSymbol, Scope, Type, Variable, is_assignable
from .stack import call_deep
from .values import NIL, Value, int_text

logger = logging.getLogger(__name__)

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

ORDERED_TYPES: set[Type] = {Type.INTEGER, Type.DECIMAL, Type.CHARACTER, Type.STRING}
NUMERIC_TYPES: set[Type] = {Type.INTEGER, Type.DECIMAL}

PRINT_TARGET = "System.out.println"


@dataclass(frozen=True)
class CheckedSource:
    """A Source whose slots have all been filled by a successful check."""

    source: Source


def _never_called(args: list[Value]) -> Value:
    raise AssertionError("functions are not invoked during checking")


def builtin_print(invoke: Callable[[list[Value]], Value]) -> FunctionSymbol:
    """The built-in print(Any): Nil, bound to the given callable."""
    return FunctionSymbol("print", PRINT_TARGET, [Type.ANY], Type.NIL, invoke)


class Checker:
    """Depth-first, left-to-right walk; raises at the first violation."""

    def __init__(self) -> None:
        self.root: Scope = Scope(None)
        self.root.define_function(builtin_print(_never_called))

    # ── Helpers ──────────────────────────────────────────────

    def resolve_type(self, name: str, offset: int) -> Type:
        if name not in TYPE_NAMES:
            raise UnknownSymbolError("unknown type '" + name + "'", offset)
        return TYPE_NAMES[name]

    def require_assignable(self, target: Type, source: Type, offset: int) -> None:
        if not is_assignable(target, source):
            raise NotAssignableError(
                "cannot assign " + source.value + " to " + target.value, offset
            )

    def require_type(self, expected: Type, actual: Type, offset: int) -> None:
        if actual != expected:
            raise TypeMismatchError(
                "expected " + expected.value + ", got " + actual.value, offset
            )

    def define_variable(
        self, scope: Scope, name: str, typ: Type, mutable: bool, offset: int
    ) -> Variable:
        if scope.declares_variable(name):
            raise DuplicateDeclarationError(
                "'" + name + "' is already declared in this scope", offset
            )
        return scope.define_variable(Variable(name, name, typ, mutable, NIL))

    # ── Top Level ────────────────────────────────────────────

    def check_source(self, source: Source) -> CheckedSource:
        for decl in source.globals:
            self.check_global(decl, self.root)
        for fn in source.functions:
            self.declare_function(fn, self.root)
        main = self.root.lookup_function("main", 0)
        if main is None:
            raise UnresolvedMainError("no main/0 function declared")
        if main.return_type != Type.INTEGER:
            raise UnresolvedMainError(
                "main/0 must return Integer, not " + main.return_type.value
            )
        for fn in source.functions:
            self.check_function(fn, self.root)
        return CheckedSource(source)

    def check_global(self, decl: Global, scope: Scope) -> None:
        typ = self.resolve_type(decl.type_name, decl.offset)
        if decl.value is not None:
            value_type = self.check_expr(decl.value, scope)
            self.require_assignable(typ, value_type, decl.value.offset)
        decl.variable = self.define_variable(scope, decl.name, typ, decl.mutable, decl.offset)

    def declare_function(self, fn: Function, scope: Scope) -> None:
        parameter_types: list[Type] = []
        for type_name in fn.parameter_type_names:
            parameter_types.append(self.resolve_type(type_name, fn.offset))
        return_type = Type.NIL
        if fn.return_type_name is not None:
            return_type = self.resolve_type(fn.return_type_name, fn.offset)
        if scope.declares_function(fn.name, len(parameter_types)):
            raise DuplicateDeclarationError(
                "function '" + fn.name + "/" + str(len(parameter_types)) + "' is already declared",
                fn.offset,
            )
        fn.function = scope.define_function(
            FunctionSymbol(fn.name, fn.name, parameter_types, return_type, _never_called)
        )

    def check_function(self, fn: Function, scope: Scope) -> None:
        assert fn.function is not None
        body = Scope(scope)
        for name, typ in zip(fn.parameters, fn.function.parameter_types):
            self.define_variable(body, name, typ, True, fn.offset)
        self.check_statements(fn.statements, body, fn.function.return_type)

    # ── Statements ───────────────────────────────────────────

    def check_statements(self, statements: list[Stmt], scope: Scope, ret: Type) -> None:
        for stmt in statements:
            self.check_stmt(stmt, scope, ret)

    def check_stmt(self, stmt: Stmt, scope: Scope, ret: Type) -> None:
        if isinstance(stmt, ExpressionStmt):
            if not isinstance(stmt.expression, Call):
                raise InvalidExpressionError(
                    "expression statement must be a function call", stmt.offset
                )
            self.check_expr(stmt.expression, scope)
        elif isinstance(stmt, Declaration):
            self.check_declaration(stmt, scope)
        elif isinstance(stmt, Assignment):
            self.check_assignment(stmt, scope)
        elif isinstance(stmt, If):
            self.require_type(Type.BOOLEAN, self.check_expr(stmt.condition, scope), stmt.condition.offset)
            if not stmt.then_statements:
                raise EmptyBlockError("IF must have at least one statement", stmt.offset)
            self.check_statements(stmt.then_statements, Scope(scope), ret)
            self.check_statements(stmt.else_statements, Scope(scope), ret)
        elif isinstance(stmt, Switch):
            self.check_switch(stmt, scope, ret)
        elif isinstance(stmt, While):
            self.require_type(Type.BOOLEAN, self.check_expr(stmt.condition, scope), stmt.condition.offset)
            self.check_statements(stmt.statements, Scope(scope), ret)
        elif isinstance(stmt, Return):
            value_type = Type.NIL
            if stmt.value is not None:
                value_type = self.check_expr(stmt.value, scope)
            self.require_assignable(ret, value_type, stmt.offset)
        else:
            raise TypeError("unknown statement: " + type(stmt).__name__)

    def check_declaration(self, stmt: Declaration, scope: Scope) -> None:
        if stmt.type_name is None and stmt.value is None:
            raise InvalidExpressionError(
                "declaration of '" + stmt.name + "' needs a type or an initial value",
                stmt.offset,
            )
        declared: Type | None = None
        if stmt.type_name is not None:
            declared = self.resolve_type(stmt.type_name, stmt.offset)
        if stmt.value is not None:
            value_type = self.check_expr(stmt.value, scope)
            if declared is None:
                declared = value_type
            else:
                self.require_assignable(declared, value_type, stmt.value.offset)
        assert declared is not None
        stmt.variable = self.define_variable(scope, stmt.name, declared, True, stmt.offset)

    def check_assignment(self, stmt: Assignment, scope: Scope) -> None:
        receiver = stmt.receiver
        if not isinstance(receiver, Access):
            raise InvalidExpressionError(
                "can only assign to a variable or list element", stmt.offset
            )
        target = self.check_expr(receiver, scope)
        assert receiver.variable is not None
        if not receiver.variable.mutable:
            raise ImmutableAssignmentError(
                "cannot assign to immutable '" + receiver.name + "'", stmt.offset
            )
        self.require_assignable(target, self.check_expr(stmt.value, scope), stmt.value.offset)

    def check_switch(self, stmt: Switch, scope: Scope, ret: Type) -> None:
        condition = self.check_expr(stmt.condition, scope)
        for case in stmt.cases:
            if case.value is not None:
                self.require_type(condition, self.check_expr(case.value, scope), case.value.offset)
            self.check_statements(case.statements, Scope(scope), ret)
        if not stmt.cases or stmt.cases[len(stmt.cases) - 1].value is not None:
            raise MissingDefaultError("SWITCH requires a DEFAULT case", stmt.offset)

    # ── Expressions ──────────────────────────────────────────

    def check_expr(self, expr: Expr, scope: Scope) -> Type:
        """Compute, record and return the static type of expr."""
        typ = self.synth(expr, scope)
        expr.type = typ
        return typ

    def synth(self, expr: Expr, scope: Scope) -> Type:
        if isinstance(expr, NilLiteral):
            return Type.NIL
        if isinstance(expr, BooleanLiteral):
            return Type.BOOLEAN
        if isinstance(expr, IntegerLiteral):
            if expr.value < INT_MIN or expr.value > INT_MAX:
                raise LiteralRangeError(
                    "integer literal " + int_text(expr.value) + " does not fit in 32 bits",
                    expr.offset,
                )
            return Type.INTEGER
        if isinstance(expr, DecimalLiteral):
            if not math.isfinite(float(expr.value)):
                raise LiteralRangeError(
                    "decimal literal " + str(expr.value) + " is out of range", expr.offset
                )
            return Type.DECIMAL
        if isinstance(expr, CharacterLiteral):
            return Type.CHARACTER
        if isinstance(expr, StringLiteral):
            return Type.STRING
        if isinstance(expr, Group):
            if not isinstance(expr.expression, Binary):
                raise InvalidExpressionError(
                    "parentheses must enclose a binary expression", expr.offset
                )
            return self.check_expr(expr.expression, scope)
        if isinstance(expr, Binary):
            return self.check_binary(expr, scope)
        if isinstance(expr, Access):
            return self.check_access(expr, scope)
        if isinstance(expr, Call):
            return self.check_call(expr, scope)
        if isinstance(expr, ListLiteral):
            return self.check_list(expr, scope)
        raise TypeError("unknown expression: " + type(expr).__name__)

    def check_binary(self, expr: Binary, scope: Scope) -> Type:
        op = expr.operator
        left = self.check_expr(expr.left, scope)
        right = self.check_expr(expr.right, scope)
        if op == "&&" or op == "||":
            self.require_type(Type.BOOLEAN, left, expr.left.offset)
            self.require_type(Type.BOOLEAN, right, expr.right.offset)
            return Type.BOOLEAN
        if op == "<" or op == ">":
            if left not in ORDERED_TYPES:
                raise TypeMismatchError(
                    "'" + op + "' cannot compare " + left.value, expr.left.offset
                )
            self.require_type(left, right, expr.right.offset)
            return Type.BOOLEAN
        if op == "==" or op == "!=":
            self.require_type(left, right, expr.right.offset)
            return Type.BOOLEAN
        if op == "+" and (left == Type.STRING or right == Type.STRING):
            return Type.STRING
        if op == "^":
            self.require_type(Type.INTEGER, left, expr.left.offset)
            self.require_type(Type.INTEGER, right, expr.right.offset)
            return Type.INTEGER
        if op in ("+", "-", "*", "/"):
            if left not in NUMERIC_TYPES:
                raise TypeMismatchError(
                    "'" + op + "' needs Integer or Decimal operands, got " + left.value,
                    expr.left.offset,
                )
            self.require_type(left, right, expr.right.offset)
            return left
        raise TypeError("unknown operator: " + op)

    def check_access(self, expr: Access, scope: Scope) -> Type:
        variable = scope.lookup_variable(expr.name)
        if variable is None:
            raise UnknownSymbolError("undefined variable '" + expr.name + "'", expr.offset)
        if expr.index is not None:
            self.require_type(Type.INTEGER, self.check_expr(expr.index, scope), expr.index.offset)
        expr.variable = variable
        return variable.type

    def check_call(self, expr: Call, scope: Scope) -> Type:
        arity = len(expr.arguments)
        function = scope.lookup_function(expr.name, arity)
        if function is None:
            if scope.has_function_named(expr.name):
                raise ArityMismatchError(
                    "no function '" + expr.name + "' taking " + str(arity) + " arguments",
                    expr.offset,
                )
            raise UnknownSymbolError("undefined function '" + expr.name + "'", expr.offset)
        for arg, param in zip(expr.arguments, function.parameter_types):
            self.require_assignable(param, self.check_expr(arg, scope), arg.offset)
        expr.function = function
        return function.return_type

    def check_list(self, expr: ListLiteral, scope: Scope) -> Type:
        if not expr.values:
            raise InvalidExpressionError(
                "list literal must have at least one element", expr.offset
            )
        element = self.check_expr(expr.values[0], scope)
        i = 1
        while i < len(expr.values):
            value = expr.values[i]
            self.require_type(element, self.check_expr(value, scope), value.offset)
            i += 1
        return element


def check(source: Source) -> CheckedSource:
    """Validate and annotate source. Raises a CheckError subclass on failure."""
    try:
        checked = call_deep(lambda: Checker().check_source(source))
    except RecursionError:
        raise InvalidExpressionError("program is nested too deeply") from None
    logger.debug("checked %d functions", len(source.functions))
    return checked
