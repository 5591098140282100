import dataclasses

import pytest

from xcspchr.model import (
    IdCounter,
    NodeConstant,
    NodeOperator,
    NodeVariable,
    OrderType,
    Tree,
    VarDecl,
    XCondition,
    XVariable,
    parse_expression,
)


def test_vardecl_orders_by_id_then_name():
    a = VarDecl(2, "b", 0, 1)
    b = VarDecl(1, "z", 0, 1)
    c = VarDecl(1, "a", 5, 9)
    assert sorted([a, b, c]) == [c, b, a]


def test_vardecl_set_deduplicates():
    decls = {VarDecl(0, "x", 1, 3), VarDecl(0, "x", 1, 3), VarDecl(1, "y", 1, 3)}
    assert len(decls) == 2


def test_id_counter_increments_and_returns_new_value():
    counter = IdCounter()
    results = [counter.increment() for _ in range(5)]
    assert results == list(range(1, 6))
    assert int(counter) == counter.value == 5


def test_id_counter_is_shared_by_reference():
    counter = IdCounter(10)
    holder_a = {"ids": counter}
    holder_b = {"ids": counter}
    holder_a["ids"].increment()
    assert holder_b["ids"].value == 11


def test_condition_is_immutable():
    cond = XCondition(OrderType.EQ, 12)
    with pytest.raises(dataclasses.FrozenInstanceError):
        cond.val = 3
    assert cond == XCondition(OrderType("eq"), 12)


def test_xvariable_equality():
    assert XVariable("x[1]") == XVariable("x[1]")
    assert XVariable("x[1]") != XVariable("x[2]")


def test_parse_nested_expression():
    tree = parse_expression("eq(x,add(y,3))")
    assert tree == Tree(
        NodeOperator(
            "eq",
            [NodeVariable("x"), NodeOperator("add", [NodeVariable("y"), NodeConstant(3)])],
        )
    )


def test_parse_strips_whitespace_inside_names():
    tree = parse_expression(" ne( x [0] [1] , -2 ) ")
    assert tree.root == NodeOperator("ne", [NodeVariable("x[0][1]"), NodeConstant(-2)])


def test_parse_single_leaves():
    assert parse_expression("7").root == NodeConstant(7)
    assert parse_expression("q").root == NodeVariable("q")


@pytest.mark.parametrize("text", ["", "eq(x,", "eq(x))", "eq(,x)", "eq(x y", "(x)", "eq(x)y"])
def test_parse_rejects_malformed(text):
    with pytest.raises(ValueError):
        parse_expression(text)