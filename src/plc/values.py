"""PLC runtime values — the only things the interpreter computes with."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


class Value:
    """A runtime value with a concrete type tag."""

    def type_name(self) -> str:
        raise NotImplementedError

    def to_string(self) -> str:
        raise NotImplementedError


@dataclass
class VNil(Value):
    def type_name(self) -> str:
        return "Nil"

    def to_string(self) -> str:
        return "NIL"


@dataclass(eq=False)
class VBool(Value):
    value: bool

    def type_name(self) -> str:
        return "Boolean"

    def to_string(self) -> str:
        return "TRUE" if self.value else "FALSE"

    def __hash__(self) -> int:
        return hash(("bool", self.value))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VBool) and self.value == other.value


@dataclass(eq=False)
class VInt(Value):
    value: int

    def type_name(self) -> str:
        return "Integer"

    def to_string(self) -> str:
        return int_text(self.value)

    def __hash__(self) -> int:
        return hash(("int", self.value))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VInt) and self.value == other.value


@dataclass(eq=False)
class VDecimal(Value):
    """Exact decimal. Equality includes scale, so 1.0 != 1.00."""

    value: Decimal

    def type_name(self) -> str:
        return "Decimal"

    def to_string(self) -> str:
        value = self.value
        if value.is_zero():
            value = value.copy_abs()
        return format(value, "f")

    def __hash__(self) -> int:
        return hash(("decimal", self.value, self.value.as_tuple().exponent))

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, VDecimal)
            and self.value == other.value
            and self.value.as_tuple().exponent == other.value.as_tuple().exponent
        )


@dataclass(eq=False)
class VChar(Value):
    value: str

    def type_name(self) -> str:
        return "Character"

    def to_string(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(("char", self.value))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VChar) and self.value == other.value


@dataclass(eq=False)
class VString(Value):
    value: str

    def type_name(self) -> str:
        return "String"

    def to_string(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(("string", self.value))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VString) and self.value == other.value


@dataclass(eq=False)
class VList(Value):
    """Mutable in place through indexed assignment, so not hashable."""

    elements: list[Value]

    def type_name(self) -> str:
        return "List"

    def to_string(self) -> str:
        inner = ", ".join(v.to_string() for v in self.elements)
        return f"[{inner}]"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VList) and self.elements == other.elements

    __hash__ = None  # type: ignore[assignment]


NIL = VNil()
TRUE = VBool(True)
FALSE = VBool(False)


def boolean(flag: bool) -> VBool:
    return TRUE if flag else FALSE


def int_text(n: int) -> str:
    """Base-10 digits of n, without the digit cap on str(int)."""
    return format(Decimal(n), "f")
