"""PLC scopes — static types, symbol entries and lexical environments."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .values import Value


class Type(Enum):
    """The closed set of static types, valued by their source names."""

    NIL = "Nil"
    BOOLEAN = "Boolean"
    INTEGER = "Integer"
    DECIMAL = "Decimal"
    CHARACTER = "Character"
    STRING = "String"
    COMPARABLE = "Comparable"
    ANY = "Any"


TYPE_NAMES: dict[str, Type] = {t.value: t for t in Type}

ANY_SOURCES: frozenset[Type] = frozenset(
    {Type.BOOLEAN, Type.CHARACTER, Type.DECIMAL, Type.INTEGER, Type.STRING, Type.ANY}
)
COMPARABLE_SOURCES: frozenset[Type] = frozenset(
    {Type.CHARACTER, Type.DECIMAL, Type.INTEGER, Type.STRING, Type.COMPARABLE}
)


def is_assignable(target: Type, source: Type) -> bool:
    """Whether a value of type source may be stored where target is expected."""
    if target == Type.ANY:
        return source in ANY_SOURCES
    if target == Type.COMPARABLE:
        return source in COMPARABLE_SOURCES
    return target == source


@dataclass
class Variable:
    name: str
    target_name: str
    type: Type
    mutable: bool
    value: Value


@dataclass
class Function:
    name: str
    target_name: str
    parameter_types: list[Type]
    return_type: Type
    invoke: Callable[[list[Value]], Value]

    @property
    def arity(self) -> int:
        return len(self.parameter_types)


class Scope:
    """Name bindings for one function body or block, chained to its parent."""

    def __init__(self, parent: Scope | None):
        self.parent: Scope | None = parent
        self.variables: dict[str, Variable] = {}
        self.functions: dict[tuple[str, int], Function] = {}

    def define_variable(self, variable: Variable) -> Variable:
        self.variables[variable.name] = variable
        return variable

    def define_function(self, function: Function) -> Function:
        self.functions[(function.name, function.arity)] = function
        return function

    def declares_variable(self, name: str) -> bool:
        """True if name is bound in this scope itself, ignoring parents."""
        return name in self.variables

    def declares_function(self, name: str, arity: int) -> bool:
        return (name, arity) in self.functions

    def lookup_variable(self, name: str) -> Variable | None:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.variables:
                return scope.variables[name]
            scope = scope.parent
        return None

    def lookup_function(self, name: str, arity: int) -> Function | None:
        scope: Scope | None = self
        while scope is not None:
            if (name, arity) in scope.functions:
                return scope.functions[(name, arity)]
            scope = scope.parent
        return None

    def has_function_named(self, name: str) -> bool:
        """True if some function of this name is visible, at any arity."""
        scope: Scope | None = self
        while scope is not None:
            for fn_name, _ in scope.functions:
                if fn_name == name:
                    return True
            scope = scope.parent
        return False
