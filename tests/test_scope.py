"""Tests for static types, assignability, scopes and runtime values."""

from decimal import Decimal

import pytest

from plc.scope import Function, Scope, Type, Variable, is_assignable
from plc.values import NIL, VBool, VChar, VDecimal, VInt, VList, VString


@pytest.mark.parametrize(
    "target,source,ok",
    [
        (Type.ANY, Type.INTEGER, True),
        (Type.ANY, Type.ANY, True),
        (Type.ANY, Type.NIL, False),
        (Type.COMPARABLE, Type.DECIMAL, True),
        (Type.COMPARABLE, Type.COMPARABLE, True),
        (Type.COMPARABLE, Type.BOOLEAN, False),
        (Type.COMPARABLE, Type.ANY, False),
        (Type.INTEGER, Type.INTEGER, True),
        (Type.INTEGER, Type.DECIMAL, False),
        (Type.STRING, Type.ANY, False),
        (Type.NIL, Type.NIL, True),
    ],
)
def test_is_assignable(target, source, ok):
    assert is_assignable(target, source) is ok


def _var(name: str) -> Variable:
    return Variable(name, name, Type.INTEGER, True, NIL)


def test_lookup_walks_outward_and_inner_shadows():
    root = Scope(None)
    child = Scope(root)
    outer = root.define_variable(_var("x"))
    assert child.lookup_variable("x") is outer
    inner = child.define_variable(_var("x"))
    assert child.lookup_variable("x") is inner
    assert root.lookup_variable("x") is outer
    assert child.lookup_variable("missing") is None


def test_declares_ignores_parents():
    root = Scope(None)
    root.define_variable(_var("x"))
    child = Scope(root)
    assert root.declares_variable("x")
    assert not child.declares_variable("x")


def test_functions_keyed_by_name_and_arity():
    root = Scope(None)
    one = root.define_function(Function("f", "f", [Type.INTEGER], Type.NIL, lambda args: NIL))
    child = Scope(root)
    assert one.arity == 1
    assert child.lookup_function("f", 1) is one
    assert child.lookup_function("f", 2) is None
    assert child.has_function_named("f")
    assert not child.has_function_named("g")
    assert root.declares_function("f", 1)
    assert not child.declares_function("f", 1)


def test_renderings():
    assert NIL.to_string() == "NIL"
    assert VBool(True).to_string() == "TRUE"
    assert VInt(-3).to_string() == "-3"
    assert VDecimal(Decimal("1.50")).to_string() == "1.50"
    assert VDecimal(Decimal("0.0000001")).to_string() == "0.0000001"
    assert VChar("c").to_string() == "c"
    assert VString("s").to_string() == "s"
    assert VList([VInt(1), VString("a"), NIL]).to_string() == "[1, a, NIL]"


def test_structural_equality():
    assert VInt(1) == VInt(1)
    assert VInt(1) != VDecimal(Decimal("1"))
    assert VString("a") != VChar("a")
    assert VList([VInt(1)]) == VList([VInt(1)])
    assert VList([VInt(1)]) != VList([VInt(1), VInt(2)])
    assert NIL == NIL


def test_decimal_equality_includes_scale():
    assert VDecimal(Decimal("1.0")) != VDecimal(Decimal("1.00"))
    assert VDecimal(Decimal("0.0")) == VDecimal(Decimal("-0.0"))
    assert hash(VDecimal(Decimal("0.0"))) == hash(VDecimal(Decimal("-0.0")))


def test_lists_are_unhashable():
    with pytest.raises(TypeError):
        hash(VList([]))
