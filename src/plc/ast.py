"""PLC AST — parse-time node definitions plus slots filled by the checker."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .scope import Function as FunctionSymbol
    from .scope import Type, Variable


# ============================================================
# DECLARATIONS
# ============================================================


@dataclass
class Global:
    """LIST / VAR / VAL name: Type ( = value )?"""

    offset: int
    name: str
    type_name: str
    mutable: bool
    value: Expr | None
    variable: Variable | None = field(default=None, kw_only=True, repr=False)


@dataclass
class Function:
    """FUN name(params): Type DO statements END"""

    offset: int
    name: str
    parameters: list[str]
    parameter_type_names: list[str]
    return_type_name: str | None
    statements: list[Stmt]
    function: FunctionSymbol | None = field(default=None, kw_only=True, repr=False)


@dataclass
class Source:
    globals: list[Global]
    functions: list[Function]


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class Stmt:
    """Base for all statement nodes."""

    offset: int


@dataclass
class ExpressionStmt(Stmt):
    expression: Expr


@dataclass
class Declaration(Stmt):
    """LET name ( : Type )? ( = value )?"""

    name: str
    type_name: str | None
    value: Expr | None
    variable: Variable | None = field(default=None, kw_only=True, repr=False)


@dataclass
class Assignment(Stmt):
    receiver: Expr
    value: Expr


@dataclass
class If(Stmt):
    condition: Expr
    then_statements: list[Stmt]
    else_statements: list[Stmt]


@dataclass
class Case:
    """CASE value: statements. value is None for DEFAULT."""

    offset: int
    value: Expr | None
    statements: list[Stmt]


@dataclass
class Switch(Stmt):
    condition: Expr
    cases: list[Case]


@dataclass
class While(Stmt):
    condition: Expr
    statements: list[Stmt]


@dataclass
class Return(Stmt):
    value: Expr | None


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    """Base for all expression nodes. type is set by the checker."""

    offset: int
    type: Type | None = field(default=None, kw_only=True, repr=False)


@dataclass
class Literal(Expr):
    pass


@dataclass
class NilLiteral(Literal):
    pass


@dataclass
class BooleanLiteral(Literal):
    value: bool


@dataclass
class IntegerLiteral(Literal):
    value: int


@dataclass
class DecimalLiteral(Literal):
    value: Decimal


@dataclass
class CharacterLiteral(Literal):
    value: str


@dataclass
class StringLiteral(Literal):
    value: str


@dataclass
class Group(Expr):
    """( expression )"""

    expression: Expr


@dataclass
class Binary(Expr):
    operator: str
    left: Expr
    right: Expr


@dataclass
class Access(Expr):
    """name, or name[offset] when indexing a list."""

    name: str
    index: Expr | None
    variable: Variable | None = field(default=None, kw_only=True, repr=False)


@dataclass
class Call(Expr):
    name: str
    arguments: list[Expr]
    function: FunctionSymbol | None = field(default=None, kw_only=True, repr=False)


@dataclass
class ListLiteral(Expr):
    values: list[Expr]
